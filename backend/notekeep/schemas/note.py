"""
Notekeep Backend: Note Request/Response Schemas
===============================================

What:  Pydantic models defining the notes API contract.
How:   FastAPI validates request bodies against the *Request models and
       serializes the *Response models. NoteService builds the response
       models from ORM rows, so routes never handle ORM objects.

Design Decision:
    Schemas are separate from SQLAlchemy models so the API exposes only
    what it means to: owner_id and version bodies never appear in note
    listings, and the version listing omits bodies entirely.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field

from notekeep.schemas.common import Pagination


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreateRequest(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class NoteUpdateRequest(BaseModel):
    """At least one of title/body must be non-empty (checked by NoteService)."""
    title: Optional[str] = None
    body: Optional[str] = None


class BulkDeleteRequest(BaseModel):
    # Plain strings: ids that are malformed are skipped like foreign ids.
    note_ids: Optional[List[str]] = Field(
        default=None, validation_alias=AliasChoices("note_ids", "noteIds")
    )


class TagsRequest(BaseModel):
    """`tags` must be a JSON array; anything else is a 400 validation error."""
    tags: List[str]


class ReminderRequest(BaseModel):
    reminder_at: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("reminder_at", "reminderDate", "when"),
        description="Trigger time (ISO 8601). Naive values are read as UTC.",
    )
    reminder_text: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("reminder_text", "reminderText", "text")
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ReminderResponse(BaseModel):
    reminder_at: datetime
    text: str
    is_completed: bool


class NoteResponse(BaseModel):
    """Full representation of a note."""
    id: uuid.UUID
    title: str
    body: str
    tags: List[str] = Field(default_factory=list, description="Normalized tags, sorted")
    is_pinned: bool
    is_favorite: bool
    reminder: Optional[ReminderResponse] = None
    version_count: int = Field(description="Number of saved version snapshots")
    created_at: datetime
    updated_at: datetime


class NoteEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    note: NoteResponse


class NoteListResponse(BaseModel):
    """Paginated listing (GET /notes, GET /notes/tag/{tag})."""
    success: bool = True
    notes: List[NoteResponse]
    pagination: Pagination


class NoteCollectionResponse(BaseModel):
    """Unpaginated listing (pinned, favorites)."""
    success: bool = True
    notes: List[NoteResponse]


class BulkDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted_count: int


class TagCount(BaseModel):
    name: str
    count: int


class TagListResponse(BaseModel):
    """Distinct tags by occurrence count, descending."""
    success: bool = True
    tags: List[TagCount]


class UpcomingReminder(BaseModel):
    note_id: uuid.UUID
    note_title: str
    reminder_at: datetime
    reminder_text: str


class ReminderListResponse(BaseModel):
    success: bool = True
    reminders: List[UpcomingReminder]


class ReminderEnvelope(BaseModel):
    success: bool = True
    message: str = "Reminder set successfully"
    reminder: ReminderResponse


class VersionSavedResponse(BaseModel):
    success: bool = True
    message: str = "Note version saved successfully"
    version_id: uuid.UUID


class VersionItem(BaseModel):
    """One entry of a note's history; the body is left out on purpose."""
    version_id: uuid.UUID
    title: str
    created_at: datetime


class VersionListResponse(BaseModel):
    success: bool = True
    title: str
    versions: List[VersionItem]
