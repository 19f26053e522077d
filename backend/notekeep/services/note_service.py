"""
Notekeep Backend: Note Service (Note Lifecycle Manager)
=======================================================

What:  Every note operation: CRUD, tags, pin/favorite, reminders, version
       history, and export.
How:   Each per-note operation resolves its target through one owner filter,
       `_get_owned_note()`, which selects on (note_id, owner_id). A note owned
       by someone else is therefore indistinguishable from a missing one:
       both raise NotFoundError("Note not found").
Who:   Called by the notes routes with the caller's user id from the auth
       dependency.
When:  Once per request; the request-scoped session commits afterwards.

Transaction model:
    Methods flush but never commit. The session dependency commits when the
    route returns and rolls back on any exception, so a failed operation
    leaves no partial write. Two concurrent writes to the same note are
    last-write-wins at the store; nothing here detects that. Appends are
    the exception: concurrent tag adds merge and concurrent snapshots both
    land.

Error Handling Strategy:
    Application errors (NotFoundError, ValidationError) propagate as-is.
    SQLAlchemy errors are logged and wrapped in DatabaseError so no query
    text or constraint name reaches the client.
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, List, Optional, Sequence, Union

from sqlalchemy import func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.exceptions import DatabaseError, NotFoundError, ValidationError
from notekeep.models.note import Note, NoteTag, NoteVersion
from notekeep.schemas.common import Pagination
from notekeep.schemas.note import (
    NoteCollectionResponse,
    NoteListResponse,
    NoteResponse,
    ReminderListResponse,
    ReminderResponse,
    TagCount,
    TagListResponse,
    UpcomingReminder,
    VersionItem,
    VersionListResponse,
)
from notekeep.services.export_service import markdown_renderer, pdf_renderer
from notekeep.services.renderer_base import DocumentRenderer, NoteDocument, RenderedDocument

logger = logging.getLogger(__name__)

IdLike = Union[uuid.UUID, str]

MAX_PAGE_SIZE = 100


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are read as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_tag(tag: Any) -> str:
    if not isinstance(tag, str):
        raise ValidationError(message="Each tag must be a string", field="tags")
    return tag.strip().lower()


def normalize_tags(tags: Any) -> List[str]:
    """
    Lowercases and trims every tag, dropping empties and duplicates while
    keeping first-seen order. ["Work", " work ", "WORK"] -> ["work"].
    """
    if not isinstance(tags, (list, tuple, set, frozenset)):
        raise ValidationError(message="Tags must be provided as an array", field="tags")
    normalized: List[str] = []
    for tag in tags:
        value = normalize_tag(tag)
        if value and value not in normalized:
            normalized.append(value)
    return normalized


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _dialect_insert(db: AsyncSession):
    """`insert()` of the bound dialect; both supported stores have ON CONFLICT."""
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


def _coerce_id(value: IdLike) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def _has_text(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def note_to_response(note: Note) -> NoteResponse:
    reminder = None
    if note.reminder_at is not None:
        reminder = ReminderResponse(
            reminder_at=note.reminder_at,
            text=note.reminder_text or "",
            is_completed=bool(note.reminder_completed),
        )
    return NoteResponse(
        id=note.id,
        title=note.title,
        body=note.body,
        tags=note.tag_names,
        is_pinned=note.is_pinned,
        is_favorite=note.is_favorite,
        reminder=reminder,
        version_count=len(note.versions),
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


# ══════════════════════════════════════════════════════════════════════════
# Service
# ══════════════════════════════════════════════════════════════════════════

class NoteService:
    """
    Business logic for notes owned by a single user.

    Every public method takes the session and the caller's user id first.
    `clock` is injectable so reminder checks can be tested deterministically.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        return as_utc(self._clock())

    # ── Owner filter ──────────────────────────────────────────────────────

    @contextmanager
    def _db_errors(self, action: str, **context: Any) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Database error while trying to %s: %s", action, e, exc_info=True)
            raise DatabaseError(
                message=f"Could not {action}. Please try again.",
                context={**{k: str(v) for k, v in context.items()}, "error_type": type(e).__name__},
            )

    async def _get_owned_note(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> Note:
        """
        The single ownership gate for per-note operations.

        Raises NotFoundError for a malformed id, a missing note, and a note
        owned by someone else, with the same message in every case.
        """
        parsed = _coerce_id(note_id)
        if parsed is None:
            raise NotFoundError(resource="note")
        result = await db.execute(
            select(Note).where(Note.id == parsed, Note.owner_id == owner_id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note")
        return note

    async def _paginate(
        self,
        db: AsyncSession,
        conditions: Sequence[Any],
        page: int,
        limit: int,
        join_tags: bool = False,
    ) -> NoteListResponse:
        if page < 1:
            raise ValidationError(message="page must be at least 1", field="page")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(message=f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

        query = select(Note)
        count_query = select(func.count(Note.id)).select_from(Note)
        if join_tags:
            query = query.join(NoteTag, NoteTag.note_id == Note.id)
            count_query = count_query.join(NoteTag, NoteTag.note_id == Note.id)
        query = (
            query.where(*conditions)
            .order_by(Note.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_query = count_query.where(*conditions)

        notes = list((await db.execute(query)).scalars().all())
        total = (await db.execute(count_query)).scalar() or 0

        return NoteListResponse(
            notes=[note_to_response(n) for n in notes],
            pagination=Pagination.build(total=total, page=page, limit=limit),
        )

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_note(
        self, db: AsyncSession, owner_id: uuid.UUID, title: Optional[str], body: Optional[str]
    ) -> NoteResponse:
        """Creates an untagged, unpinned, non-favorite note with no history."""
        if not _has_text(title) or not _has_text(body):
            raise ValidationError(message="Title and body are required")

        now = self.now()
        note = Note(
            id=uuid.uuid4(),
            owner_id=owner_id,
            title=title,
            body=body,
            created_at=now,
            updated_at=now,
            is_pinned=False,
            is_favorite=False,
            tags=[],
            versions=[],
        )
        with self._db_errors("create the note"):
            db.add(note)
            await db.flush()
        logger.info("Note %s created for user %s", note.id, owner_id)
        return note_to_response(note)

    async def list_notes(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
    ) -> NoteListResponse:
        """
        Newest-first page of the caller's notes.

        `search` is a case-insensitive substring match on title OR body;
        LIKE wildcards in the term are matched literally.
        """
        conditions: List[Any] = [Note.owner_id == owner_id]
        if search and search.strip():
            pattern = f"%{_escape_like(search)}%"
            conditions.append(
                or_(
                    Note.title.ilike(pattern, escape="\\"),
                    Note.body.ilike(pattern, escape="\\"),
                )
            )
        with self._db_errors("retrieve notes"):
            return await self._paginate(db, conditions, page, limit)

    async def get_note(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> NoteResponse:
        with self._db_errors("retrieve the note", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
        return note_to_response(note)

    async def update_note(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        note_id: IdLike,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> NoteResponse:
        """Updates the non-empty fields among title/body and bumps updated_at."""
        if not _has_text(title) and not _has_text(body):
            raise ValidationError(message="Provide title or body to update")

        with self._db_errors("update the note", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            if _has_text(title):
                note.title = title
            if _has_text(body):
                note.body = body
            note.updated_at = self.now()
            await db.flush()
        return note_to_response(note)

    async def delete_note(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> None:
        with self._db_errors("delete the note", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            await db.delete(note)
            await db.flush()
        logger.info("Note %s deleted by user %s", note_id, owner_id)

    async def delete_notes(self, db: AsyncSession, owner_id: uuid.UUID, note_ids: Any) -> int:
        """
        Deletes every listed note the caller owns and returns how many went.

        Ids that are malformed, missing, or owned by someone else are
        skipped without error.
        """
        if not isinstance(note_ids, (list, tuple, set)) or len(note_ids) == 0:
            raise ValidationError(message="Please provide an array of note IDs", field="note_ids")

        ids = {parsed for parsed in (_coerce_id(i) for i in note_ids) if parsed is not None}
        if not ids:
            return 0

        with self._db_errors("delete notes"):
            result = await db.execute(
                select(Note).where(Note.id.in_(ids), Note.owner_id == owner_id)
            )
            notes = list(result.scalars().all())
            for note in notes:
                await db.delete(note)
            await db.flush()

        logger.info("Bulk delete by user %s: %d of %d ids removed", owner_id, len(notes), len(note_ids))
        return len(notes)

    # ── Tags ──────────────────────────────────────────────────────────────

    async def add_tags(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike, tags: Any
    ) -> NoteResponse:
        """
        Set-union of the normalized tags into the note's tag set.

        Rows go in with ON CONFLICT DO NOTHING, so a tag another session
        attached since this one loaded the note is a no-op, not an error.
        """
        normalized = normalize_tags(tags)
        with self._db_errors("add tags", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            existing = {t.tag for t in note.tags}
            missing = [tag for tag in normalized if tag not in existing]
            if missing:
                insert = _dialect_insert(db)
                await db.execute(
                    insert(NoteTag)
                    .values([{"id": uuid.uuid4(), "note_id": note.id, "tag": tag} for tag in missing])
                    .on_conflict_do_nothing(index_elements=["note_id", "tag"])
                )
                await db.refresh(note, attribute_names=["tags"])
        return note_to_response(note)

    async def remove_tags(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike, tags: Any
    ) -> NoteResponse:
        doomed = set(normalize_tags(tags))
        with self._db_errors("remove tags", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            for tag in [t for t in note.tags if t.tag in doomed]:
                note.tags.remove(tag)
            await db.flush()
        return note_to_response(note)

    async def list_notes_by_tag(
        self, db: AsyncSession, owner_id: uuid.UUID, tag: str, page: int = 1, limit: int = 10
    ) -> NoteListResponse:
        normalized = normalize_tag(tag)
        if not normalized:
            raise ValidationError(message="Tag must not be empty", field="tag")
        with self._db_errors("retrieve notes by tag", tag=normalized):
            return await self._paginate(
                db,
                [Note.owner_id == owner_id, NoteTag.tag == normalized],
                page,
                limit,
                join_tags=True,
            )

    async def list_tags(self, db: AsyncSession, owner_id: uuid.UUID) -> TagListResponse:
        """
        Distinct tags across the caller's notes with occurrence counts.

        Ordered by count descending; equal counts fall back to alphabetical
        order, which callers should not rely on.
        """
        count = func.count(NoteTag.id)
        query = (
            select(NoteTag.tag, count)
            .join(Note, Note.id == NoteTag.note_id)
            .where(Note.owner_id == owner_id)
            .group_by(NoteTag.tag)
            .order_by(count.desc(), NoteTag.tag)
        )
        with self._db_errors("retrieve tags"):
            rows = (await db.execute(query)).all()
        return TagListResponse(tags=[TagCount(name=name, count=n) for name, n in rows])

    # ── Pin / Favorite ────────────────────────────────────────────────────

    async def toggle_pin(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> NoteResponse:
        with self._db_errors("toggle pin status", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            note.is_pinned = not note.is_pinned
            await db.flush()
        return note_to_response(note)

    async def toggle_favorite(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike
    ) -> NoteResponse:
        with self._db_errors("toggle favorite status", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            note.is_favorite = not note.is_favorite
            await db.flush()
        return note_to_response(note)

    async def _list_flagged(self, db: AsyncSession, owner_id: uuid.UUID, flag: Any) -> NoteCollectionResponse:
        query = (
            select(Note)
            .where(Note.owner_id == owner_id, flag.is_(True))
            .order_by(Note.updated_at.desc())
        )
        notes = (await db.execute(query)).scalars().all()
        return NoteCollectionResponse(notes=[note_to_response(n) for n in notes])

    async def list_pinned(self, db: AsyncSession, owner_id: uuid.UUID) -> NoteCollectionResponse:
        with self._db_errors("retrieve pinned notes"):
            return await self._list_flagged(db, owner_id, Note.is_pinned)

    async def list_favorites(self, db: AsyncSession, owner_id: uuid.UUID) -> NoteCollectionResponse:
        with self._db_errors("retrieve favorite notes"):
            return await self._list_flagged(db, owner_id, Note.is_favorite)

    # ── Reminders ─────────────────────────────────────────────────────────

    async def set_reminder(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        note_id: IdLike,
        when: Optional[datetime],
        text: Optional[str] = None,
    ) -> ReminderResponse:
        """
        Schedules the note's reminder, replacing any previous one.

        The time must be strictly in the future now; it is not re-checked
        later, so a reminder simply becomes due. Setting a reminder on a note
        whose reminder was completed schedules it again.
        """
        if when is None:
            raise ValidationError(message="Reminder date is required", field="reminder_at")
        when = as_utc(when)
        if when <= self.now():
            raise ValidationError(message="Reminder date must be in the future", field="reminder_at")

        with self._db_errors("set the reminder", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            note.reminder_at = when
            note.reminder_text = text if _has_text(text) else f"Reminder for: {note.title}"
            note.reminder_completed = False
            await db.flush()

        return ReminderResponse(reminder_at=when, text=note.reminder_text, is_completed=False)

    async def complete_reminder(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike
    ) -> NoteResponse:
        with self._db_errors("complete the reminder", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            if not note.has_reminder:
                raise NotFoundError(resource="reminder", message="No reminder found for this note")
            note.reminder_completed = True
            await db.flush()
        return note_to_response(note)

    async def list_upcoming_reminders(
        self, db: AsyncSession, owner_id: uuid.UUID, limit: int = 10
    ) -> ReminderListResponse:
        """Uncompleted reminders due at or after now, soonest first."""
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(message=f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
        query = (
            select(Note.id, Note.title, Note.reminder_at, Note.reminder_text)
            .where(
                Note.owner_id == owner_id,
                Note.reminder_at.is_not(None),
                Note.reminder_at >= self.now(),
                Note.reminder_completed.is_(False),
            )
            .order_by(Note.reminder_at.asc())
            .limit(limit)
        )
        with self._db_errors("retrieve reminders"):
            rows = (await db.execute(query)).all()
        return ReminderListResponse(
            reminders=[
                UpcomingReminder(
                    note_id=note_id,
                    note_title=title,
                    reminder_at=reminder_at,
                    reminder_text=reminder_text or "",
                )
                for note_id, title, reminder_at, reminder_text in rows
            ]
        )

    # ── Versions ──────────────────────────────────────────────────────────

    def _snapshot(self, note: Note) -> NoteVersion:
        version = NoteVersion(
            id=uuid.uuid4(),
            sequence=len(note.versions) + 1,
            title=note.title,
            body=note.body,
            created_at=self.now(),
        )
        note.versions.append(version)
        return version

    async def save_version(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> uuid.UUID:
        """Appends a snapshot of the current title/body; returns its id."""
        with self._db_errors("save the note version", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            version = self._snapshot(note)
            await db.flush()
        return version.id

    async def list_versions(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike
    ) -> VersionListResponse:
        with self._db_errors("retrieve note versions", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
        return VersionListResponse(
            title=note.title,
            versions=[
                VersionItem(version_id=v.id, title=v.title, created_at=v.created_at)
                for v in note.versions
            ],
        )

    async def restore_version(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike, version_id: IdLike
    ) -> NoteResponse:
        """
        Restores title/body from `version_id`.

        The current state is snapshotted first, so a restore never loses
        history: after it, the list holds one more version than before.
        """
        with self._db_errors("restore the note version", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
            wanted = _coerce_id(version_id)
            target = next((v for v in note.versions if v.id == wanted), None)
            if target is None:
                raise NotFoundError(resource="version", message="Version not found")

            self._snapshot(note)
            note.title = target.title
            note.body = target.body
            note.updated_at = self.now()
            await db.flush()

        logger.info("Note %s restored to version %s", note.id, target.id)
        return note_to_response(note)

    # ── Export ────────────────────────────────────────────────────────────

    async def export_note(
        self,
        db: AsyncSession,
        owner_id: uuid.UUID,
        note_id: IdLike,
        renderer: DocumentRenderer,
    ) -> RenderedDocument:
        with self._db_errors("export the note", note_id=note_id):
            note = await self._get_owned_note(db, owner_id, note_id)
        document = NoteDocument(
            note_id=str(note.id),
            title=note.title,
            body=note.body,
            created_at=note.created_at,
            updated_at=note.updated_at,
            tags=note.tag_names,
        )
        return await renderer.render_document(document)

    async def export_markdown(
        self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike
    ) -> RenderedDocument:
        return await self.export_note(db, owner_id, note_id, markdown_renderer)

    async def export_pdf(self, db: AsyncSession, owner_id: uuid.UUID, note_id: IdLike) -> RenderedDocument:
        return await self.export_note(db, owner_id, note_id, pdf_renderer)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
