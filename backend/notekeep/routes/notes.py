"""
Notekeep Backend: Notes Route Handlers
======================================

What:  Every /notes endpoint: CRUD, bulk delete, tags, pin/favorite,
       reminders, versions, and export.
How:   Each handler depends on `get_current_user` (the auth gate) and passes
       the caller's user id to NoteService, which applies the owner filter.
       Handlers only shape envelopes and headers.

Route order:
    Fixed paths (/notes/bulk, /notes/tags, /notes/pinned, ...) are declared
    before the /notes/{note_id} family, and note ids use Starlette's uuid
    convertor, so "tags" or "pinned" can never be captured as a note id.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.database import get_db_session
from notekeep.dependencies import CurrentUser, get_current_user
from notekeep.schemas.common import ErrorResponse, MessageResponse
from notekeep.schemas.note import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    NoteCollectionResponse,
    NoteCreateRequest,
    NoteEnvelope,
    NoteListResponse,
    NoteUpdateRequest,
    ReminderEnvelope,
    ReminderListResponse,
    ReminderRequest,
    TagListResponse,
    TagsRequest,
    VersionListResponse,
    VersionSavedResponse,
)
from notekeep.services.note_service import MAX_PAGE_SIZE, note_service
from notekeep.services.renderer_base import RenderedDocument

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["Notes"])

NOT_FOUND = {404: {"description": "Note not found", "model": ErrorResponse}}


def _download(document: RenderedDocument) -> Response:
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f"attachment; filename={document.filename}"},
    )


# ══════════════════════════════════════════════════════════════════════════
# Collection endpoints
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=NoteEnvelope,
    responses={400: {"description": "Title or body missing", "model": ErrorResponse}},
    summary="Create a note",
)
async def create_note(
    payload: NoteCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.create_note(db, current_user.user_id, payload.title, payload.body)
    return NoteEnvelope(message="Note created successfully", note=note)


@router.get("", response_model=NoteListResponse, summary="List notes, newest first")
async def list_notes(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    search: str | None = Query(default=None, description="Case-insensitive substring of title or body"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes(db, current_user.user_id, page=page, limit=limit, search=search)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.delete(
    "/bulk",
    response_model=BulkDeleteResponse,
    responses={400: {"description": "note_ids missing or empty", "model": ErrorResponse}},
    summary="Delete several notes; ids the caller does not own are skipped",
)
async def delete_notes(
    payload: BulkDeleteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BulkDeleteResponse:
    deleted = await note_service.delete_notes(db, current_user.user_id, payload.note_ids)
    return BulkDeleteResponse(message=f"{deleted} notes deleted successfully", deleted_count=deleted)


@router.get("/tags", response_model=TagListResponse, summary="Distinct tags with counts")
async def list_tags(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TagListResponse:
    return await note_service.list_tags(db, current_user.user_id)


@router.get("/tag/{tag}", response_model=NoteListResponse, summary="Notes carrying a tag")
async def list_notes_by_tag(
    tag: str,
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    result = await note_service.list_notes_by_tag(db, current_user.user_id, tag, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get("/pinned", response_model=NoteCollectionResponse, summary="Pinned notes")
async def list_pinned(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteCollectionResponse:
    return await note_service.list_pinned(db, current_user.user_id)


@router.get("/favorites", response_model=NoteCollectionResponse, summary="Favorite notes")
async def list_favorites(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteCollectionResponse:
    return await note_service.list_favorites(db, current_user.user_id)


@router.get("/reminders", response_model=ReminderListResponse, summary="Upcoming reminders")
async def list_upcoming_reminders(
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReminderListResponse:
    return await note_service.list_upcoming_reminders(db, current_user.user_id, limit=limit)


# ══════════════════════════════════════════════════════════════════════════
# Single-note endpoints
# ══════════════════════════════════════════════════════════════════════════


@router.get("/{note_id:uuid}", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Get a note")
async def get_note(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.get_note(db, current_user.user_id, note_id)
    return NoteEnvelope(note=note)


@router.put("/{note_id:uuid}", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Update a note")
async def update_note(
    note_id: UUID,
    payload: NoteUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.update_note(
        db, current_user.user_id, note_id, title=payload.title, body=payload.body
    )
    return NoteEnvelope(message="Note updated successfully", note=note)


@router.delete("/{note_id:uuid}", response_model=MessageResponse, responses=NOT_FOUND, summary="Delete a note")
async def delete_note(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db, current_user.user_id, note_id)
    return MessageResponse(message="Note deleted successfully")


# ── Tags ──────────────────────────────────────────────────────────────────

@router.post("/{note_id:uuid}/tags", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Add tags")
async def add_tags(
    note_id: UUID,
    payload: TagsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.add_tags(db, current_user.user_id, note_id, payload.tags)
    return NoteEnvelope(message="Tags added successfully", note=note)


@router.delete("/{note_id:uuid}/tags", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Remove tags")
async def remove_tags(
    note_id: UUID,
    payload: TagsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.remove_tags(db, current_user.user_id, note_id, payload.tags)
    return NoteEnvelope(message="Tags removed successfully", note=note)


# ── Pin / Favorite ────────────────────────────────────────────────────────

@router.patch("/{note_id:uuid}/pin", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Toggle pin")
async def toggle_pin(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.toggle_pin(db, current_user.user_id, note_id)
    message = "Note pinned successfully" if note.is_pinned else "Note unpinned successfully"
    return NoteEnvelope(message=message, note=note)


@router.patch(
    "/{note_id:uuid}/favorite", response_model=NoteEnvelope, responses=NOT_FOUND, summary="Toggle favorite"
)
async def toggle_favorite(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.toggle_favorite(db, current_user.user_id, note_id)
    message = "Note added to favorites" if note.is_favorite else "Note removed from favorites"
    return NoteEnvelope(message=message, note=note)


# ── Reminders ─────────────────────────────────────────────────────────────

@router.post(
    "/{note_id:uuid}/reminder",
    response_model=ReminderEnvelope,
    responses={**NOT_FOUND, 400: {"description": "Missing or past date", "model": ErrorResponse}},
    summary="Set (or replace) the note's reminder",
)
async def set_reminder(
    note_id: UUID,
    payload: ReminderRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ReminderEnvelope:
    reminder = await note_service.set_reminder(
        db, current_user.user_id, note_id, payload.reminder_at, payload.reminder_text
    )
    return ReminderEnvelope(reminder=reminder)


@router.patch(
    "/{note_id:uuid}/reminder/complete",
    response_model=MessageResponse,
    responses=NOT_FOUND,
    summary="Mark the note's reminder as completed",
)
async def complete_reminder(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.complete_reminder(db, current_user.user_id, note_id)
    return MessageResponse(message="Reminder marked as completed")


# ── Versions ──────────────────────────────────────────────────────────────

@router.post(
    "/{note_id:uuid}/versions",
    status_code=status.HTTP_201_CREATED,
    response_model=VersionSavedResponse,
    responses=NOT_FOUND,
    summary="Snapshot the note's current title and body",
)
async def save_version(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VersionSavedResponse:
    version_id = await note_service.save_version(db, current_user.user_id, note_id)
    return VersionSavedResponse(version_id=version_id)


@router.get(
    "/{note_id:uuid}/versions", response_model=VersionListResponse, responses=NOT_FOUND, summary="Version history"
)
async def list_versions(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> VersionListResponse:
    return await note_service.list_versions(db, current_user.user_id, note_id)


@router.post(
    "/{note_id:uuid}/versions/{version_id}/restore",
    response_model=NoteEnvelope,
    responses=NOT_FOUND,
    summary="Restore a saved version (the current state is snapshotted first)",
)
async def restore_version(
    note_id: UUID,
    version_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.restore_version(db, current_user.user_id, note_id, version_id)
    return NoteEnvelope(message="Note restored to previous version", note=note)


# ── Export ────────────────────────────────────────────────────────────────

@router.get(
    "/{note_id:uuid}/export/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}, **NOT_FOUND},
    summary="Download the note as PDF",
)
async def export_pdf(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    return _download(await note_service.export_pdf(db, current_user.user_id, note_id))


@router.get(
    "/{note_id:uuid}/export/markdown",
    response_class=Response,
    responses={200: {"content": {"text/markdown": {}}}, **NOT_FOUND},
    summary="Download the note as Markdown",
)
async def export_markdown(
    note_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    return _download(await note_service.export_markdown(db, current_user.user_id, note_id))
