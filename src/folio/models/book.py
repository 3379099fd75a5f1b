"""Data models for the canonical reading structure (Markdown, EPUB, TXT, PDF)."""

from typing import Literal

from pydantic import BaseModel, Field

DocumentFormat = Literal["markdown", "epub", "txt", "pdf"]


class TOCEntry(BaseModel):
    """Single entry in table of contents."""

    title: str
    anchor: str
    level: int = 0
    children: list["TOCEntry"] = Field(default_factory=list)


class Heading(BaseModel):
    """Heading collected from rendered Markdown."""

    id: str
    text: str
    level: int


class Chapter(BaseModel):
    """Chapter content and metadata."""

    id: str
    title: str
    index: int
    href: str
    html: str = ""
    word_count: int = 0
    has_images: bool = False


class PdfDocument(BaseModel):
    """Opaque handle to a PDF for the external page renderer."""

    url: str
    page_count: int = 0


class ParsedDocument(BaseModel):
    """Canonical output of any format pipeline.

    ``content`` is an HTML string for Markdown, a list of chapters for EPUB,
    raw text for TXT and a page-count handle for PDF.
    """

    format: DocumentFormat
    content: str | list[Chapter] | PdfDocument
    toc: list[TOCEntry] = Field(default_factory=list)
    headings: list[Heading] = Field(default_factory=list)
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def chapters(self) -> list[Chapter]:
        if isinstance(self.content, list):
            return self.content
        return []

    def iter_toc(self) -> list[TOCEntry]:
        """Flatten the TOC tree in document order."""
        flat: list[TOCEntry] = []

        def walk(entries: list[TOCEntry]) -> None:
            for entry in entries:
                flat.append(entry)
                walk(entry.children)

        walk(self.toc)
        return flat

    def chapter_index(self, anchor: str) -> int | None:
        """Index of the chapter an href (with or without fragment) points into."""
        target = anchor.split("#", 1)[0]
        for chapter in self.chapters:
            if chapter.href == target or chapter.id == target:
                return chapter.index
        return None

    def resolve_anchor(self, anchor: str) -> bool:
        if self.format == "epub":
            return self.chapter_index(anchor) is not None
        if self.format == "markdown":
            return any(h.id == anchor for h in self.headings) or (
                isinstance(self.content, str) and f'id="{anchor}"' in self.content
            )
        return False

    def unresolved_anchors(self) -> list[str]:
        return [e.anchor for e in self.iter_toc() if not self.resolve_anchor(e.anchor)]

    def title_for(self, anchor: str | None) -> str | None:
        """Display title of the TOC entry matching ``anchor``."""
        if not anchor:
            return None
        for entry in self.iter_toc():
            if entry.anchor == anchor:
                return entry.title
        return None
