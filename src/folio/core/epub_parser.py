"""EPUB chapter and navigation parsing using ebooklib."""

import logging
import posixpath
import warnings
from pathlib import Path

import ebooklib
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning
from ebooklib import epub

from folio.core.epub_container import InvalidContainer
from folio.models.book import Chapter, ParsedDocument, TOCEntry

# Suppress XML parsing warnings - EPUB files often use XHTML
warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

log = logging.getLogger(__name__)


class EpubParser:
    """Parse an EPUB into spine-ordered chapters and a nested TOC."""

    def __init__(self, epub_path: Path):
        self.path = epub_path
        try:
            self.book = epub.read_epub(str(epub_path), options={"ignore_ncx": False})
        except Exception as e:
            # Bad zips, missing members and malformed OPF or NCX all land here
            raise InvalidContainer(f"Invalid EPUB: {e}") from e

    def parse(self) -> ParsedDocument:
        """Parse the EPUB and return the canonical reading structure."""
        try:
            return self._parse()
        except InvalidContainer:
            raise
        except Exception as e:
            raise InvalidContainer(f"Unreadable EPUB content: {e}") from e

    def _parse(self) -> ParsedDocument:
        chapters = self._get_chapters()
        return ParsedDocument(
            format="epub",
            content=chapters,
            toc=self._get_toc(chapters),
            metadata=self._get_metadata(),
        )

    def _get_metadata(self) -> dict[str, str]:
        """Extract Dublin Core fields present in the package."""
        metadata: dict[str, str] = {}
        for key, element in (
            ("title", "title"),
            ("author", "creator"),
            ("language", "language"),
            ("publisher", "publisher"),
            ("pubdate", "date"),
        ):
            values = self.book.get_metadata("DC", element)
            if values and values[0][0]:
                metadata[key] = str(values[0][0])
        return metadata

    def _get_toc(self, chapters: list[Chapter]) -> list[TOCEntry]:
        """Extract hierarchical table of contents."""
        return self._parse_toc_recursive(self.book.toc, chapters)

    def _parse_toc_recursive(
        self, toc_items: list, chapters: list[Chapter], level: int = 0
    ) -> list[TOCEntry]:
        """Recursively parse TOC structure.

        Entries whose href matches no chapter are dropped and their children
        promoted, so every anchor in the result resolves.
        """
        entries = []

        for item in toc_items:
            if isinstance(item, tuple):
                # Section with children: (Section, [children])
                section, children = item
                link, sub_items = section, children
            else:
                link, sub_items = item, []

            children_entries = self._parse_toc_recursive(sub_items, chapters, level + 1)
            anchor = self._resolve_href(getattr(link, "href", None) or "", chapters)

            if anchor is None:
                if children_entries:
                    # Section headings without their own document
                    for child in children_entries:
                        _shift_level(child, -1)
                    entries.extend(children_entries)
                else:
                    log.debug("Dropping TOC entry with dangling href %r", link.href)
                continue

            entries.append(
                TOCEntry(
                    title=link.title or "Untitled",
                    anchor=anchor,
                    level=level,
                    children=children_entries,
                )
            )

        return entries

    def _resolve_href(self, href: str, chapters: list[Chapter]) -> str | None:
        """Map a navigation href onto a chapter-relative anchor."""
        if not href:
            return None
        file_ref, _, fragment = href.partition("#")
        file_ref = posixpath.normpath(file_ref) if file_ref else ""

        target = None
        for chapter in chapters:
            if chapter.href == file_ref:
                target = chapter.href
                break
        if target is None and file_ref:
            # Nav documents in subfolders resolve relative to themselves
            for chapter in chapters:
                if chapter.href.endswith("/" + file_ref) or file_ref.endswith(
                    "/" + chapter.href
                ):
                    target = chapter.href
                    break
        if target is None:
            return None
        return f"{target}#{fragment}" if fragment else target

    def _get_chapters(self) -> list[Chapter]:
        """Extract spine documents as chapters, in reading order."""
        toc_titles = self._build_toc_title_map()

        chapters = []
        index = 0

        for idref, _linear in self.book.spine:
            item = self.book.get_item_with_id(idref)
            if item is None or item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            if isinstance(item, epub.EpubNav):
                continue

            content = item.get_content()
            file_name = item.get_name()

            # Try TOC title first, then extract from content, then use file name
            title = (
                toc_titles.get(file_name)
                or self._extract_title_from_content(content)
                or file_name
            )
            body_html, word_count = self._extract_body(content)

            chapters.append(
                Chapter(
                    id=item.get_id(),
                    title=title,
                    index=index,
                    href=file_name,
                    html=body_html,
                    word_count=word_count,
                    has_images=b"<img" in content.lower(),
                )
            )
            index += 1

        return chapters

    def _build_toc_title_map(self) -> dict[str, str]:
        """Build a map of file names to TOC titles."""
        title_map: dict[str, str] = {}
        self._collect_toc_titles(self.book.toc, title_map)
        return title_map

    def _collect_toc_titles(
        self, toc_items: list, title_map: dict[str, str]
    ) -> None:
        """Recursively collect titles from TOC."""
        for item in toc_items:
            if isinstance(item, tuple):
                section, children = item
                if section.href and section.title:
                    # Extract file name (remove fragment)
                    file_ref = section.href.split("#")[0]
                    if file_ref not in title_map:
                        title_map[file_ref] = section.title
                self._collect_toc_titles(children, title_map)
            else:
                if item.href and item.title:
                    file_ref = item.href.split("#")[0]
                    if file_ref not in title_map:
                        title_map[file_ref] = item.title

    def _extract_title_from_content(self, content: bytes) -> str | None:
        """Try to extract title from HTML content."""
        soup = BeautifulSoup(content, "lxml")
        # Try h1 first, then h2, then title tag
        for tag in ["h1", "h2", "title"]:
            element = soup.find(tag)
            if element:
                text = element.get_text(strip=True)
                if text:
                    return text
        return None

    def _extract_body(self, content: bytes) -> tuple[str, int]:
        """Return the inner HTML of <body> and its word count."""
        soup = BeautifulSoup(content, "lxml")
        for tag in soup(["script", "style"]):
            tag.decompose()
        body = soup.body or soup
        text = body.get_text(separator=" ", strip=True)
        return body.decode_contents(), len(text.split())


def _shift_level(entry: TOCEntry, delta: int) -> None:
    entry.level = max(entry.level + delta, 0)
    for child in entry.children:
        _shift_level(child, delta)
