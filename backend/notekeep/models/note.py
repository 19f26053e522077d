"""
Notekeep Backend: Note SQLAlchemy Models
========================================

What:  ORM models for `notes`, `note_tags`, and `note_versions`.
How:   Inherit from the shared DeclarativeBase; Alembic revision 001 mirrors
       these definitions.
Who:   Used by NoteService for every note operation.

Table Design:
    notes
      - owner_id: every query filters on (id, owner_id); indexed together
        with created_at for the "my notes, newest first" listing
      - is_pinned / is_favorite: plain flags flipped by toggles
      - reminder_*: at most one reminder per note, embedded as nullable
        columns (all NULL means "no reminder")
    note_tags
      - one row per (note, normalized tag); the unique constraint makes the
        tag set a real set
    note_versions
      - append-only snapshots of {title, body}, ordered by (created_at,
        sequence); `sequence` is a tiebreaker, not a key, so two sessions
        snapshotting the same note at once both keep their rows

    Child rows are loaded eagerly with selectin so that response building
    never triggers a lazy load on an async session.
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notekeep.database import Base

if TYPE_CHECKING:
    from notekeep.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A personal note owned by exactly one user.

    Reminder lifecycle:
        None → Scheduled (set_reminder) → Completed (complete_reminder)
        Scheduled/Completed → Scheduled again on a new set_reminder
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Timestamps ────────────────────────────────────────────────────────
    # updated_at is set explicitly by the service on every mutation; an
    # onupdate default would expire the attribute after flush.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # ── Flags ─────────────────────────────────────────────────────────────
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # ── Reminder ──────────────────────────────────────────────────────────
    reminder_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    reminder_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)
    reminder_completed: Mapped[Optional[bool]] = mapped_column(
        Boolean, nullable=True, default=None
    )

    # ── Relationships ─────────────────────────────────────────────────────
    owner: Mapped["User"] = relationship(back_populates="notes", lazy="raise")

    tags: Mapped[List["NoteTag"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        order_by="NoteTag.tag",
        lazy="selectin",
    )

    versions: Mapped[List["NoteVersion"]] = relationship(
        back_populates="note",
        cascade="all, delete-orphan",
        order_by=lambda: [NoteVersion.created_at, NoteVersion.sequence],
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_notes_owner_created_at", "owner_id", "created_at"),
        Index("idx_notes_reminder_at", "reminder_at"),
    )

    @property
    def tag_names(self) -> List[str]:
        return sorted(t.tag for t in self.tags)

    @property
    def has_reminder(self) -> bool:
        return self.reminder_at is not None

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id}, title='{self.title[:30]}')>"


class NoteTag(Base):
    """A normalized (lowercase, trimmed) tag attached to a note."""

    __tablename__ = "note_tags"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    tag: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    note: Mapped["Note"] = relationship(back_populates="tags")

    __table_args__ = (UniqueConstraint("note_id", "tag", name="uq_note_tags_note_tag"),)


class NoteVersion(Base):
    """Immutable snapshot of a note's title and body."""

    __tablename__ = "note_versions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("notes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    note: Mapped["Note"] = relationship(back_populates="versions")
