"""Markdown to HTML conversion with heading anchors and a table of contents."""

import html
import logging
import re

import markdown
import yaml
from bs4 import BeautifulSoup, Tag
from markdown.extensions.toc import slugify_unicode
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

from folio.models.book import Heading, ParsedDocument, TOCEntry

log = logging.getLogger(__name__)

TOC_LEVELS = ("h1", "h2", "h3")

MARKDOWN_EXTENSIONS = [
    "tables",
    "fenced_code",
    "sane_lists",
    "toc",
    "pymdownx.tilde",
    "pymdownx.tasklist",
]

_FRONTMATTER_RE = re.compile(r"^---\n([\s\S]*?)\n---\n")
_NO_HIGHLIGHT = {"nohighlight", "no-highlight", "plaintext", "text"}


class SlugCounter:
    """Unicode slugs; repeats get ``-1``, ``-2`` suffixes in document order."""

    def __init__(self) -> None:
        self.occurrences: dict[str, int] = {}

    def __call__(self, value: str, separator: str) -> str:
        slug = original = slugify_unicode(value, separator)
        while slug in self.occurrences:
            self.occurrences[original] += 1
            slug = f"{original}-{self.occurrences[original]}"
        self.occurrences[slug] = 0
        return slug


class MarkdownPipeline:
    """Render Markdown source to HTML plus an ordered heading list.

    Stages run in a fixed order: parse and convert (GFM tables,
    strikethrough, task lists, raw HTML kept), assign heading ids and wrap
    heading text in self-links, highlight fenced code, collect h1-h3, then
    serialize.
    """

    def __init__(self, highlight_code: bool = True):
        self.highlight_code = highlight_code
        self._formatter = HtmlFormatter(nowrap=True)

    def render(self, source: str) -> tuple[str, list[Heading]]:
        body = self._convert(source)
        soup = BeautifulSoup(body, "html.parser")

        if self.highlight_code:
            for code in soup.select("pre > code"):
                self._highlight_block(code)

        headings = self._collect_headings(soup)
        return str(soup), headings

    def _convert(self, source: str) -> str:
        """Markdown -> HTML with unique, self-linked heading ids."""
        md = markdown.Markdown(
            extensions=MARKDOWN_EXTENSIONS,
            extension_configs={
                "toc": {
                    "slugify": SlugCounter(),
                    "anchorlink": True,
                    "permalink": False,
                },
                "pymdownx.tasklist": {"custom_checkbox": False},
            },
            output_format="html",
        )
        try:
            return md.convert(source)
        except Exception:
            log.warning("Markdown conversion failed, rendering as plain text", exc_info=True)
            return f"<pre>{html.escape(source)}</pre>"

    def _highlight_block(self, code: Tag) -> None:
        """Highlight one code block in place; failures leave it as plain text."""
        language = None
        for cls in code.get("class") or []:
            if cls.startswith("language-"):
                language = cls[len("language-"):]
                break

        if language in _NO_HIGHLIGHT:
            return

        text = code.get_text()
        try:
            if language:
                lexer = get_lexer_by_name(language)
            else:
                lexer = guess_lexer(text)
            highlighted = highlight(text, lexer, self._formatter)
        except ClassNotFound:
            log.debug("No lexer for code block language %r", language)
            return
        except Exception:
            log.debug("Highlighting failed for code block", exc_info=True)
            return

        code.clear()
        code.append(BeautifulSoup(highlighted, "html.parser"))
        classes = list(code.get("class") or [])
        detected = f"language-{lexer.aliases[0]}" if lexer.aliases else None
        if detected and detected not in classes:
            classes.append(detected)
        classes.append("highlight")
        code["class"] = classes

    def _collect_headings(self, soup: BeautifulSoup) -> list[Heading]:
        headings = []
        for tag in soup.find_all(TOC_LEVELS):
            heading_id = tag.get("id")
            text = tag.get_text()
            if heading_id and text:
                headings.append(
                    Heading(id=str(heading_id), text=text, level=int(tag.name[1]))
                )
        return headings


def render_markdown(source: str) -> tuple[str, list[Heading]]:
    """Render Markdown to ``(html, headings)``."""
    return MarkdownPipeline().render(source)


def headings_to_toc(headings: list[Heading]) -> list[TOCEntry]:
    """Flat TOC from headings; ``level`` keeps the rank for indentation."""
    return [TOCEntry(title=h.text, anchor=h.id, level=h.level) for h in headings]


def parse_frontmatter(content: str) -> tuple[dict[str, str], str]:
    """Split a leading ``---`` block from Markdown content.

    Returns ``(metadata, body)``; without a block the content is returned
    untouched.
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    block = match.group(1)
    body = content[match.end():]

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError:
        data = None

    metadata: dict[str, str] = {}
    if isinstance(data, dict):
        for key, value in data.items():
            if value is None:
                continue
            metadata[str(key)] = str(value).strip().strip("\"'")
        return metadata, body

    # Not valid YAML: fall back to simple "key: value" lines
    for line in block.split("\n"):
        key, sep, value = line.partition(":")
        if key.strip() and sep:
            metadata[key.strip()] = value.strip().strip("\"'")
    return metadata, body


def parse_markdown_document(source: str) -> ParsedDocument:
    """Frontmatter split + render, packaged as a :class:`ParsedDocument`."""
    metadata, body = parse_frontmatter(source)
    html_content, headings = render_markdown(body)
    return ParsedDocument(
        format="markdown",
        content=html_content,
        toc=headings_to_toc(headings),
        headings=headings,
        metadata=metadata,
    )
