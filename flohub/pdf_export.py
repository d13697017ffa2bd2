"""
PDF rendering for exported notes and meeting notes.

Documents are built with reportlab's platypus layer into an in-memory
buffer; the views stream the bytes back as an attachment.
"""
import html
from io import BytesIO
from typing import Dict, Any, List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, HRFlowable

from .utils import to_iso

_styles = getSampleStyleSheet()
BODY_STYLE = ParagraphStyle("FloHubBody", parent=_styles["Normal"], fontSize=11, leading=14, spaceAfter=8)
META_STYLE = ParagraphStyle(
    "FloHubMeta", parent=_styles["Normal"], fontSize=9, leading=12, textColor=colors.HexColor("#555555")
)


def _text(value) -> str:
    """Escape for reportlab's mini-markup, keeping line breaks."""
    return html.escape(str(value or "")).replace("\n", "<br/>")


def _build(story) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=inch,
        bottomMargin=inch,
        leftMargin=inch,
        rightMargin=inch,
    )
    doc.build(story)
    return buffer.getvalue()


def action_line(action: Dict[str, Any]) -> str:
    mark = "x" if action.get("status") == "done" else " "
    return f"- [{mark}] {action.get('description', '')} (Assigned to: {action.get('assignedTo', '')})"


def meeting_note_pdf(note: Dict[str, Any]) -> bytes:
    story = [Paragraph(_text(note.get("title") or "Untitled Meeting Note"), _styles["Title"])]

    if note.get("isAdhoc"):
        story.append(Paragraph("Ad-hoc Meeting", META_STYLE))
    elif note.get("eventTitle"):
        story.append(Paragraph(_text(f"Associated Event: {note['eventTitle']}"), META_STYLE))
    if note.get("createdAt"):
        story.append(Paragraph(_text(f"Created: {to_iso(note['createdAt'])}"), META_STYLE))
    if note.get("tags"):
        story.append(Paragraph(_text(f"Tags: {', '.join(note['tags'])}"), META_STYLE))
    story.append(Spacer(1, 12))

    if note.get("agenda"):
        story.append(Paragraph("Agenda:", _styles["Heading2"]))
        story.append(Paragraph(_text(note["agenda"]), BODY_STYLE))

    story.append(Paragraph("Meeting Minutes:", _styles["Heading2"]))
    story.append(Paragraph(_text(note.get("content")), BODY_STYLE))

    actions = note.get("actions") or []
    if actions:
        story.append(Paragraph("Action Items:", _styles["Heading2"]))
        for action in actions:
            story.append(Paragraph(_text(action_line(action)), BODY_STYLE))

    if note.get("aiSummary"):
        story.append(Paragraph("AI Summary:", _styles["Heading2"]))
        story.append(Paragraph(_text(note["aiSummary"]), BODY_STYLE))

    return _build(story)


def notes_pdf(notes: List[Dict[str, Any]]) -> bytes:
    """All notes in one document, separated by a rule."""
    story = []
    for note in notes:
        story.append(Paragraph(_text(note.get("title") or "Untitled Note"), _styles["Heading1"]))
        story.append(Paragraph(_text(note.get("content")), BODY_STYLE))
        story.append(HRFlowable(width="100%", color=colors.HexColor("#999999"), spaceBefore=6, spaceAfter=12))
    return _build(story)
