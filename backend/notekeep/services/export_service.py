"""
Notekeep Backend: Note Export Renderers
=======================================

What:  Markdown and PDF renderers for GET /notes/{id}/export/*.
How:   Markdown is assembled as text. PDF uses reportlab's platypus layout
       (SimpleDocTemplate + Paragraph flowables); reportlab is synchronous
       and CPU-bound, so the build runs in Starlette's threadpool.

Both formats carry the same sections in the same order:
    title, created/updated timestamps, tags (when present), body.
"""

import io
import logging
from datetime import datetime
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer
from starlette.concurrency import run_in_threadpool

from notekeep.exceptions import RenderError
from notekeep.services.renderer_base import DocumentRenderer, NoteDocument

logger = logging.getLogger(__name__)


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


class MarkdownRenderer(DocumentRenderer):
    extension = "md"
    media_type = "text/markdown; charset=utf-8"

    def render_text(self, document: NoteDocument) -> str:
        lines = [
            f"# {document.title}",
            "",
            f"Created: {format_timestamp(document.created_at)}",
            f"Last Updated: {format_timestamp(document.updated_at)}",
            "",
        ]
        if document.tags:
            lines += [f"**Tags:** {', '.join(document.tags)}", ""]
        lines += ["## Content", "", document.body, ""]
        return "\n".join(lines)

    async def render(self, document: NoteDocument) -> bytes:
        return self.render_text(document).encode("utf-8")


class PdfRenderer(DocumentRenderer):
    extension = "pdf"
    media_type = "application/pdf"

    def __init__(self) -> None:
        styles = getSampleStyleSheet()
        self._styles: Dict[str, ParagraphStyle] = {
            "title": ParagraphStyle("NoteTitle", parent=styles["Title"], fontSize=20, spaceAfter=12),
            "meta": ParagraphStyle("NoteMeta", parent=styles["Normal"], fontSize=10, textColor=colors.HexColor("#555555")),
            "heading": ParagraphStyle("NoteHeading", parent=styles["Heading2"], fontSize=14, spaceBefore=10),
            "body": ParagraphStyle("NoteBody", parent=styles["BodyText"], fontSize=12, leading=16),
        }

    def _flowables(self, document: NoteDocument) -> List[Any]:
        s = self._styles
        flow: List[Any] = [
            Paragraph(escape(document.title), s["title"]),
            Paragraph(f"Created: {format_timestamp(document.created_at)}", s["meta"]),
            Paragraph(f"Last Updated: {format_timestamp(document.updated_at)}", s["meta"]),
            Spacer(1, 6 * mm),
        ]
        if document.tags:
            flow.append(Paragraph("Tags:", s["heading"]))
            flow.append(Paragraph(escape(", ".join(document.tags)), s["body"]))
        flow.append(Paragraph("Content:", s["heading"]))
        for block in document.body.split("\n\n"):
            flow.append(Paragraph(escape(block).replace("\n", "<br/>"), s["body"]))
            flow.append(Spacer(1, 3 * mm))
        return flow

    def render_sync(self, document: NoteDocument) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=18 * mm,
            rightMargin=18 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=document.title,
        )
        doc.build(self._flowables(document))
        return buf.getvalue()

    async def render(self, document: NoteDocument) -> bytes:
        try:
            return await run_in_threadpool(self.render_sync, document)
        except Exception as e:
            logger.error("PDF rendering failed for note %s: %s", document.note_id, e, exc_info=True)
            raise RenderError(context={"note_id": document.note_id, "error_type": type(e).__name__})


# ── Singleton Instances ───────────────────────────────────────────────────
markdown_renderer = MarkdownRenderer()
pdf_renderer = PdfRenderer()
