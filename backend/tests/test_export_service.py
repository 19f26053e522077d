"""
Notekeep Backend: Export Renderer Tests
=======================================

What:  Markdown layout, PDF output, filenames, and failure wrapping.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from notekeep.exceptions import RenderError
from notekeep.services.export_service import MarkdownRenderer, PdfRenderer
from notekeep.services.renderer_base import NoteDocument


@pytest.fixture
def document():
    return NoteDocument(
        note_id="7b0c8c52-0d7b-4a3c-9f51-8a3e1c2b4d10",
        title="Weekly <plan> & goals",
        body="First line\nsecond line\n\nNew paragraph",
        created_at=datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc),
        updated_at=datetime(2025, 1, 16, 18, 0, tzinfo=timezone.utc),
        tags=["home", "work"],
    )


class TestMarkdownRenderer:

    def test_layout(self, document):
        text = MarkdownRenderer().render_text(document)

        assert text.splitlines()[:5] == [
            "# Weekly <plan> & goals",
            "",
            "Created: 2025-01-15 09:30:00 UTC",
            "Last Updated: 2025-01-16 18:00:00 UTC",
            "",
        ]
        assert "**Tags:** home, work" in text
        assert text.index("## Content") < text.index("First line")

    def test_tags_section_omitted_when_untagged(self, document):
        untagged = NoteDocument(
            note_id=document.note_id,
            title=document.title,
            body=document.body,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )
        assert "**Tags:**" not in MarkdownRenderer().render_text(untagged)

    @pytest.mark.asyncio
    async def test_render_document(self, document):
        rendered = await MarkdownRenderer().render_document(document)

        assert rendered.filename == f"note-{document.note_id}.md"
        assert rendered.media_type.startswith("text/markdown")
        assert rendered.content.decode("utf-8").startswith("# Weekly")


class TestPdfRenderer:

    @pytest.mark.asyncio
    async def test_render_produces_pdf_with_markup_in_title(self, document):
        rendered = await PdfRenderer().render_document(document)

        assert rendered.filename == f"note-{document.note_id}.pdf"
        assert rendered.media_type == "application/pdf"
        assert rendered.content.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_layout_failure_becomes_render_error(self, document):
        renderer = PdfRenderer()
        with patch.object(renderer, "render_sync", side_effect=ValueError("layout exploded")):
            with pytest.raises(RenderError) as exc_info:
                await renderer.render(document)

        assert exc_info.value.context["note_id"] == document.note_id
        assert "layout exploded" not in exc_info.value.message
