"""Reading session: document loading, chapter cursor and bookmarks."""

import logging
from typing import Callable, Literal

from folio.config import FolioConfig
from folio.core.epub_container import InvalidContainer
from folio.core.fetcher import DocumentFetcher, FetchFailure
from folio.core.parser_factory import load_document
from folio.core.position import BookmarkPositionModel, SwitchChapter, capture
from folio.core.text_renderer import ChunkedTextRenderer, ScrollGrowthTrigger
from folio.models.book import Chapter, ParsedDocument, TOCEntry
from folio.models.position import ScrollMetrics
from folio.models.source import (
    DocumentSource,
    EpubSource,
    MarkdownSource,
    PdfSource,
    TxtSource,
)
from folio.storage.manager import LibraryStore, NotFound
from folio.storage.models import BookmarkCreate, BookmarkRecord, BookRecord

log = logging.getLogger(__name__)

LoadState = Literal["idle", "loading", "ready", "error"]


def source_for_book(book: BookRecord) -> DocumentSource:
    """Build the document source for a stored book.

    Markdown and TXT books prefer the first chapter's stored content and
    fall back to the uploaded file.
    """
    if book.format in ("markdown", "txt"):
        inline = book.chapters[0].content if book.chapters else None
        source_cls = MarkdownSource if book.format == "markdown" else TxtSource
        if inline:
            return source_cls(content=inline)
        return source_cls(url=book.file_path)
    if book.format == "epub":
        return EpubSource(url=book.file_path)
    if book.format == "pdf":
        return PdfSource(url=book.file_path)
    raise ValueError(f"Unsupported format: {book.format}")


class ReadingSession:
    """State of one open book.

    Every :meth:`load` starts a new generation; results that arrive for an
    older generation are discarded. The table of contents is published
    together with the content it points into.
    """

    def __init__(
        self,
        book: BookRecord,
        store: LibraryStore,
        fetcher: DocumentFetcher | None = None,
        config: FolioConfig | None = None,
    ):
        config = config or FolioConfig()
        self.book = book
        self.store = store
        self.fetcher = fetcher or DocumentFetcher(
            root=config.library_dir, timeout=config.fetch_timeout
        )
        self.positions = BookmarkPositionModel(settle_delay=config.settle_delay)
        self.text_renderer = ChunkedTextRenderer(chunk_size=config.chunk_size)
        self.growth = ScrollGrowthTrigger(self.text_renderer)

        self.state: LoadState = "idle"
        self.error: str | None = None
        self.document: ParsedDocument | None = None
        self.toc: list[TOCEntry] = []
        self.current_chapter: str | None = None
        self.bookmarks: list[BookmarkRecord] = []
        self._generation = 0

    # Loading

    async def load(
        self,
        source: DocumentSource | None = None,
        on_ready: Callable[[ParsedDocument], None] | None = None,
    ) -> ParsedDocument | None:
        """Load ``source`` (default: the book's own file).

        ``on_ready`` is bound to this load only and is never called for a
        superseded one. Returns None when the load failed or went stale.
        """
        source = source or source_for_book(self.book)
        self._generation += 1
        generation = self._generation

        self.state = "loading"
        self.error = None
        self.document = None
        self.toc = []
        self.current_chapter = None

        try:
            document = await load_document(source, self.fetcher)
        except (FetchFailure, InvalidContainer) as e:
            if generation != self._generation:
                log.debug("Discarding failure of superseded load: %s", e)
                return None
            log.warning("Failed to load %s: %s", self.book.slug, e)
            self.state = "error"
            self.error = str(e)
            return None

        if generation != self._generation:
            log.debug("Discarding superseded load of %s", self.book.slug)
            return None

        self._commit(document)
        if on_ready is not None:
            on_ready(document)
        return document

    def _commit(self, document: ParsedDocument) -> None:
        if document.format == "txt" and isinstance(document.content, str):
            self.text_renderer.reset(document.content)
            self.growth.reset()
        if document.chapters:
            self.current_chapter = document.chapters[0].href

        self.document = document
        self.toc = document.toc
        self.state = "ready"

    def cancel(self) -> None:
        """Invalidate any load in flight."""
        self._generation += 1

    # Chapters

    @property
    def chapter(self) -> Chapter | None:
        """The mounted EPUB chapter."""
        if self.document is None or not self.current_chapter:
            return None
        index = self.document.chapter_index(self.current_chapter)
        return self.document.chapters[index] if index is not None else None

    @property
    def current_title(self) -> str | None:
        if self.document is None:
            return None
        title = self.document.title_for(self.current_chapter)
        if title is None and self.chapter is not None:
            title = self.chapter.title
        return title

    def switch_chapter(self, anchor: str) -> bool:
        """Move the cursor to ``anchor``; False if it does not resolve."""
        if self.document is None or not self.document.resolve_anchor(anchor):
            log.debug("Ignoring unresolved anchor %r", anchor)
            return False
        self.current_chapter = anchor
        return True

    def _step_chapter(self, delta: int) -> bool:
        chapter = self.chapter
        if chapter is None or self.document is None:
            return False
        target = chapter.index + delta
        if not 0 <= target < len(self.document.chapters):
            return False
        self.current_chapter = self.document.chapters[target].href
        return True

    def next_chapter(self) -> bool:
        return self._step_chapter(1)

    def previous_chapter(self) -> bool:
        return self._step_chapter(-1)

    # Bookmarks

    def refresh_bookmarks(self) -> list[BookmarkRecord]:
        self.bookmarks = self.store.list_bookmarks(self.book.id)
        return self.bookmarks

    def add_bookmark(self, metrics: ScrollMetrics, note: str | None = None) -> BookmarkRecord:
        """Capture the current position and persist it.

        The cached list is refreshed only after the store confirms.
        """
        snapshot = capture(
            self.current_chapter,
            metrics.scroll_y,
            metrics.document_height,
            metrics.viewport_height,
        )
        chapter_title = self.current_title
        if chapter_title:
            title = f"{chapter_title} ({snapshot.percentage}%)"
        else:
            title = f"Reading position {snapshot.percentage}%"

        bookmark = self.store.create_bookmark(
            self.book.id,
            BookmarkCreate(
                chapter_anchor=self.current_chapter,
                position=snapshot.to_payload(),
                title=title,
                note=note,
            ),
        )
        self.refresh_bookmarks()
        return bookmark

    def delete_bookmark(self, bookmark_id: str) -> None:
        """Remove locally first, then in the store.

        A failed store call restores the cached entry; a bookmark the store
        no longer has stays removed.
        """
        previous = list(self.bookmarks)
        self.bookmarks = [b for b in self.bookmarks if b.id != bookmark_id]
        try:
            self.store.delete_bookmark(self.book.id, bookmark_id)
        except NotFound:
            log.debug("Bookmark %s already gone", bookmark_id)
        except Exception:
            self.bookmarks = previous
            raise

    async def navigate_to_bookmark(
        self,
        bookmark: BookmarkRecord,
        scroll_to: Callable[[float], object],
        measure: Callable[[], tuple[float, float]],
        switch_chapter: SwitchChapter | None = None,
    ) -> bool:
        """Restore a bookmark: switch chapter if needed, then seek."""
        snapshot = bookmark.snapshot()
        if snapshot is None:
            log.debug("Bookmark %s has no readable position", bookmark.id)
            return False
        return await self.positions.navigate(
            snapshot,
            self.current_chapter,
            switch_chapter or self.switch_chapter,
            scroll_to,
            measure,
        )
