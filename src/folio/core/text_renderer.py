"""Incremental rendering of large plain-text documents."""

import html
import logging
import re
from dataclasses import dataclass, field
from typing import Literal

log = logging.getLogger(__name__)

# Characters revealed per growth step (about 50KB)
CHUNK_SIZE = 50_000

# Fraction of the scrollable height that triggers the next chunk
GROWTH_THRESHOLD = 0.8

_PARAGRAPH_BREAK_RE = re.compile(r"\n\n+")


@dataclass
class Paragraph:
    """One paragraph of visible text."""

    kind: Literal["prose", "code"]
    text: str
    lines: list[str] = field(default_factory=list)


def is_code_like(lines: list[str]) -> bool:
    """Every line is empty or indented by two spaces or a tab."""
    return all(line == "" or line.startswith("  ") or line.startswith("\t") for line in lines)


def classify_paragraphs(text: str) -> list[Paragraph]:
    """Split text on blank-line runs and classify each piece.

    Multi-line code-like paragraphs become preformatted blocks; everything
    else is prose whose single newlines stay line breaks.
    """
    paragraphs = []
    for chunk in _PARAGRAPH_BREAK_RE.split(text):
        if not chunk:
            continue
        lines = chunk.split("\n")
        kind: Literal["prose", "code"] = (
            "code" if len(lines) > 1 and is_code_like(lines) else "prose"
        )
        paragraphs.append(Paragraph(kind=kind, text=chunk, lines=lines))
    return paragraphs


def render_paragraphs_html(paragraphs: list[Paragraph]) -> str:
    """Serialize classified paragraphs to escaped HTML."""
    parts = []
    for paragraph in paragraphs:
        if paragraph.kind == "code":
            parts.append(f"<pre><code>{html.escape(paragraph.text)}</code></pre>")
        else:
            lines = "<br>\n".join(html.escape(line) for line in paragraph.lines)
            parts.append(f"<p>{lines}</p>")
    return "\n".join(parts)


class ChunkedTextRenderer:
    """Hold a full document and expose a growing visible prefix.

    ``visible_length`` only moves forward for a given document and is reset
    to the first chunk whenever :meth:`reset` loads new text.
    """

    def __init__(self, full_text: str = "", chunk_size: int = CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.full_text = ""
        self.visible_length = 0
        self.reset(full_text)

    def reset(self, full_text: str) -> None:
        self.full_text = full_text
        self.visible_length = min(self.chunk_size, len(full_text))

    @property
    def full_length(self) -> int:
        return len(self.full_text)

    def visible_text(self) -> str:
        return self.full_text[: self.visible_length]

    def has_more(self) -> bool:
        return self.visible_length < self.full_length

    def grow(self) -> None:
        """Reveal the next chunk; a no-op once everything is visible."""
        if not self.has_more():
            return
        self.visible_length = min(self.visible_length + self.chunk_size, self.full_length)
        log.debug("Revealed %d of %d characters", self.visible_length, self.full_length)

    def reveal_all(self) -> None:
        self.visible_length = self.full_length

    def progress_percent(self) -> int:
        if self.full_length == 0:
            return 100
        return round(self.visible_length / self.full_length * 100)

    def paragraphs(self) -> list[Paragraph]:
        return classify_paragraphs(self.visible_text())

    def render_html(self) -> str:
        return render_paragraphs_html(self.paragraphs())


class ScrollGrowthTrigger:
    """Scroll policy that grows a renderer near the end of the content.

    At most one growth is in flight: after a trigger fires, further scroll
    events are ignored until :meth:`commit` reports the new content as
    rendered.
    """

    def __init__(self, renderer: ChunkedTextRenderer, threshold: float = GROWTH_THRESHOLD):
        self.renderer = renderer
        self.threshold = threshold
        self.in_flight = False

    def should_grow(self, scroll_y: float, viewport_height: float, document_height: float) -> bool:
        if self.in_flight or not self.renderer.has_more():
            return False
        return scroll_y + viewport_height > document_height * self.threshold

    def on_scroll(self, scroll_y: float, viewport_height: float, document_height: float) -> bool:
        """Handle one scroll event; returns True when a growth was started."""
        if not self.should_grow(scroll_y, viewport_height, document_height):
            return False
        self.in_flight = True
        self.renderer.grow()
        return True

    def commit(self) -> None:
        """The grown content has been mounted; accept triggers again."""
        self.in_flight = False

    def reset(self) -> None:
        self.in_flight = False
