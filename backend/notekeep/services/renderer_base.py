"""
Notekeep Backend: Abstract Document Renderer Interface
======================================================

What:  Contract for the formatting collaborators used by note export.
How:   Concrete renderers (Markdown, PDF) implement `render()`; NoteService
       only knows this interface and the `NoteDocument` it passes in.
Who:   Called by NoteService.export_note().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass(frozen=True)
class NoteDocument:
    """Everything a renderer may print, detached from the ORM session."""
    note_id: str
    title: str
    body: str
    created_at: datetime
    updated_at: datetime
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RenderedDocument:
    """Renderer output plus what the HTTP layer needs to serve it."""
    content: bytes
    media_type: str
    filename: str


class DocumentRenderer(ABC):
    """
    Turns a NoteDocument into bytes of one format.

    Contract:
        - render() returns the full document; no streaming
        - implementations raise RenderError for their own failures
        - extension/media_type describe the output for download headers
    """

    extension: str = ""
    media_type: str = "application/octet-stream"

    @abstractmethod
    async def render(self, document: NoteDocument) -> bytes:
        """Render `document` and return the encoded bytes."""
        ...

    def filename_for(self, document: NoteDocument) -> str:
        return f"note-{document.note_id}.{self.extension}"

    async def render_document(self, document: NoteDocument) -> RenderedDocument:
        content = await self.render(document)
        return RenderedDocument(
            content=content,
            media_type=self.media_type,
            filename=self.filename_for(document),
        )
