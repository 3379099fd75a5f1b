"""Display helpers for the reader TUI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rich.markup import escape
from rich.text import Text

from folio.core.content_processor import ContentProcessor
from folio.core.session import ReadingSession
from folio.core.text_renderer import Paragraph
from folio.models.book import PdfDocument
from folio.models.settings import ReaderSettings
from folio.storage.models import BookmarkRecord

PaneKind = Literal["markdown", "text", "message"]

# Terminal columns for each content width
CONTENT_COLUMNS = {"narrow": 72, "normal": 88, "wide": 110}


@dataclass
class PaneContent:
    """What the content pane should show for the session's current state."""

    kind: PaneKind
    markdown: str = ""
    text: Text | None = None


def text_renderable(paragraphs: list[Paragraph]) -> Text:
    """Plain-text paragraphs as rich text; code-like blocks keep their layout."""
    text = Text()
    for i, paragraph in enumerate(paragraphs):
        if i:
            text.append("\n\n")
        if paragraph.kind == "code":
            text.append(paragraph.text, style="bright_black")
        else:
            text.append("\n".join(paragraph.lines))
    return text


def pane_content(session: ReadingSession, processor: ContentProcessor) -> PaneContent:
    """Build the content pane for the session's loaded document."""
    if session.state == "loading":
        return PaneContent("message", markdown="*Loading...*")
    if session.state == "error":
        return PaneContent("message", markdown=f"**Failed to load:** {session.error}")

    document = session.document
    if document is None:
        return PaneContent("message", markdown="*Nothing loaded*")

    if document.format == "markdown" and isinstance(document.content, str):
        return PaneContent("markdown", markdown=processor.process(document.content))
    if document.format == "epub":
        chapter = session.chapter
        if chapter is None:
            return PaneContent("message", markdown="*This book has no readable chapters*")
        return PaneContent("markdown", markdown=processor.process(chapter.html))
    if document.format == "txt":
        return PaneContent("text", text=text_renderable(session.text_renderer.paragraphs()))
    if isinstance(document.content, PdfDocument):
        pdf = document.content
        return PaneContent(
            "message",
            markdown=(
                f"# {session.book.title}\n\n"
                f"PDF document, {pdf.page_count} pages.\n\n"
                f"Open `{pdf.url}` in a PDF viewer to read it."
            ),
        )
    return PaneContent("message", markdown="*Unsupported document*")


def bookmark_label(bookmark: BookmarkRecord) -> str:
    label = escape(bookmark.title or "Bookmark")
    if bookmark.note:
        label = f"{label}\n[dim]{escape(bookmark.note)}[/]"
    return label


def status_line(session: ReadingSession, settings: ReaderSettings) -> str:
    parts = [f"[bold]{escape(session.book.title)}[/]"]
    title = session.current_title
    if title:
        parts.append(escape(title))
    if session.document is not None and session.document.format == "txt":
        parts.append(f"{session.text_renderer.progress_percent()}% loaded")
    parts.append(f"[dim]{settings.font_size}px[/]")
    return "  |  ".join(parts)
