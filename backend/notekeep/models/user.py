"""
Notekeep Backend: User SQLAlchemy Model
=======================================

What:  ORM model for the `users` table (the identity store).
Who:   Read by the auth gate on every authenticated request; written by
       AuthService at signup and password reset.

Table Design:
    - UUID primary key (non-enumerable, embedded in session tokens)
    - email: stored lowercase with a unique index, so uniqueness is
      case-insensitive without relying on a citext column
    - password_hash: argon2 encoded hash; the raw password is never stored
    - notes: the owner's notes, oldest first; references are maintained
      through notes.owner_id, so creating or deleting a note updates this
      collection without touching the user row
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notekeep.database import Base

if TYPE_CHECKING:
    from notekeep.models.note import Note


class User(Base):
    """An account that owns notes."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
        comment="Lowercased email address; unique across all accounts",
    )

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Profile ───────────────────────────────────────────────────────────
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_number: Mapped[str] = mapped_column(String(32), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # lazy="raise": the collection can be large and is never needed when the
    # auth gate loads a user; services query notes by owner_id instead.
    # Removing a user relies on the ON DELETE CASCADE foreign key.
    notes: Mapped[List["Note"]] = relationship(
        back_populates="owner",
        order_by="Note.created_at",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
