import asyncio
from pathlib import Path

import pytest

from folio.config import FolioConfig
from folio.core import session as session_module
from folio.core.session import ReadingSession, source_for_book
from folio.models.book import ParsedDocument
from folio.models.position import ScrollMetrics
from folio.models.source import EpubSource, MarkdownSource, TxtSource
from folio.storage.manager import JsonLibraryStore, NotFound
from folio.storage.models import BookCreate, BookmarkCreate, BookRecord


ROOT_OPF_CONTAINER = """<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>"""


class FlakyStore(JsonLibraryStore):
    """Store whose bookmark deletion fails on demand."""

    def __init__(self, library_dir: Path, error: Exception):
        super().__init__(library_dir)
        self.error = error

    def delete_bookmark(self, book_id: str, bookmark_id: str) -> None:
        raise self.error


# --- Sources ---


def test_source_prefers_inline_chapter_content(markdown_book: BookRecord) -> None:
    source = source_for_book(markdown_book)

    assert isinstance(source, MarkdownSource)
    assert source.content is not None


def test_source_falls_back_to_file(store: JsonLibraryStore) -> None:
    book = store.add_book(BookCreate(title="T", format="txt", file_path="/uploads/t.txt"))

    source = source_for_book(book)

    assert isinstance(source, TxtSource)
    assert source.url == "/uploads/t.txt"


def test_epub_source_uses_file(epub_book: BookRecord) -> None:
    assert source_for_book(epub_book) == EpubSource(url="/uploads/book.epub")


# --- Loading ---


@pytest.mark.asyncio
async def test_load_publishes_content_and_toc_together(
    epub_book: BookRecord, store: JsonLibraryStore, config: FolioConfig
) -> None:
    session = ReadingSession(epub_book, store, config=config)
    seen: list[ParsedDocument] = []

    document = await session.load(on_ready=seen.append)

    assert session.state == "ready"
    assert seen == [document]
    assert session.toc == document.toc
    assert session.current_chapter == "intro.xhtml"
    assert session.current_title == "Introduction"


@pytest.mark.asyncio
async def test_missing_file_enters_error_state(store: JsonLibraryStore, config: FolioConfig) -> None:
    book = store.add_book(BookCreate(title="Gone", format="epub", file_path="/uploads/gone.epub"))
    session = ReadingSession(book, store, config=config)

    assert await session.load() is None
    assert session.state == "error"
    assert session.error
    assert session.toc == []


@pytest.mark.asyncio
async def test_malformed_package_enters_error_state(
    store: JsonLibraryStore, library_dir: Path, config: FolioConfig, zip_factory
) -> None:
    uploads = library_dir / "uploads"
    uploads.mkdir(parents=True, exist_ok=True)
    (uploads / "bad.epub").write_bytes(
        zip_factory(
            {
                "mimetype": "application/epub+zip",
                "META-INF/container.xml": ROOT_OPF_CONTAINER,
                "content.opf": "<package><metadata><dc:title>broken",
            }
        )
    )
    book = store.add_book(BookCreate(title="Bad", format="epub", file_path="/uploads/bad.epub"))
    session = ReadingSession(book, store, config=config)

    assert await session.load() is None
    assert session.state == "error"
    assert session.error
    assert session.toc == []


@pytest.mark.asyncio
async def test_stale_load_is_discarded(
    markdown_book: BookRecord, store: JsonLibraryStore, config: FolioConfig, monkeypatch
) -> None:
    release_first = asyncio.Event()
    real_load = session_module.load_document

    async def slow_load(source, fetcher=None):
        if source.content == "# First":
            await release_first.wait()
        return await real_load(source, fetcher)

    monkeypatch.setattr(session_module, "load_document", slow_load)
    session = ReadingSession(markdown_book, store, config=config)
    ready: list[str] = []

    first = asyncio.create_task(
        session.load(MarkdownSource(content="# First"), on_ready=lambda d: ready.append("first"))
    )
    await asyncio.sleep(0)
    second = await session.load(
        MarkdownSource(content="# Second"), on_ready=lambda d: ready.append("second")
    )
    release_first.set()

    assert await first is None
    assert second is not None
    assert ready == ["second"]
    assert [e.title for e in session.toc] == ["Second"]


@pytest.mark.asyncio
async def test_text_load_resets_renderer(store: JsonLibraryStore, library_dir: Path) -> None:
    book = store.add_book(BookCreate(title="Big", format="txt", file_path="/uploads/big.txt"))
    config = FolioConfig(library_dir=library_dir, chunk_size=10)
    session = ReadingSession(book, store, config=config)

    await session.load(TxtSource(content="x" * 25))

    assert session.text_renderer.visible_length == 10
    assert session.text_renderer.has_more()


# --- Chapters ---


@pytest.mark.asyncio
async def test_chapter_navigation(
    epub_book: BookRecord, store: JsonLibraryStore, config: FolioConfig
) -> None:
    session = ReadingSession(epub_book, store, config=config)
    await session.load()

    assert not session.previous_chapter()
    assert session.next_chapter()
    assert session.chapter.title == "Chapter One"
    assert not session.next_chapter()

    assert session.switch_chapter("intro.xhtml")
    assert not session.switch_chapter("nowhere.xhtml")
    assert session.current_chapter == "intro.xhtml"


# --- Bookmarks ---


@pytest.mark.asyncio
async def test_add_bookmark_uses_chapter_title(
    epub_book: BookRecord, store: JsonLibraryStore, config: FolioConfig
) -> None:
    session = ReadingSession(epub_book, store, config=config)
    await session.load()

    bookmark = session.add_bookmark(ScrollMetrics(scroll_y=300, document_height=1300, viewport_height=300))

    assert bookmark.title == "Introduction (30%)"
    assert bookmark.chapter_anchor == "intro.xhtml"
    assert session.bookmarks == [bookmark]
    snapshot = bookmark.snapshot()
    assert snapshot is not None and snapshot.percentage == 30


def test_bookmark_without_chapter_title(markdown_book: BookRecord, store: JsonLibraryStore) -> None:
    session = ReadingSession(markdown_book, store)

    bookmark = session.add_bookmark(ScrollMetrics(scroll_y=50, document_height=200, viewport_height=100))

    assert bookmark.title == "Reading position 50%"


def test_delete_bookmark_removes_locally_and_in_store(
    markdown_book: BookRecord, store: JsonLibraryStore
) -> None:
    session = ReadingSession(markdown_book, store)
    bookmark = session.add_bookmark(ScrollMetrics())

    session.delete_bookmark(bookmark.id)

    assert session.bookmarks == []
    assert store.list_bookmarks(markdown_book.id) == []


def test_failed_delete_restores_bookmark(markdown_book: BookRecord, library_dir: Path) -> None:
    store = FlakyStore(library_dir, OSError("disk full"))
    session = ReadingSession(markdown_book, store)
    bookmark = store.create_bookmark(markdown_book.id, BookmarkCreate(title="keep"))
    session.refresh_bookmarks()

    with pytest.raises(OSError):
        session.delete_bookmark(bookmark.id)

    assert [b.id for b in session.bookmarks] == [bookmark.id]


def test_delete_of_vanished_bookmark_stays_removed(
    markdown_book: BookRecord, library_dir: Path
) -> None:
    store = FlakyStore(library_dir, NotFound("gone"))
    session = ReadingSession(markdown_book, store)
    store.create_bookmark(markdown_book.id, BookmarkCreate(title="x"))
    session.refresh_bookmarks()

    session.delete_bookmark(session.bookmarks[0].id)

    assert session.bookmarks == []


@pytest.mark.asyncio
async def test_navigate_to_bookmark_switches_then_scrolls(
    epub_book: BookRecord, store: JsonLibraryStore, config: FolioConfig
) -> None:
    session = ReadingSession(epub_book, store, config=config)
    await session.load()
    session.next_chapter()
    bookmark = store.create_bookmark(
        epub_book.id,
        BookmarkCreate(
            chapter_anchor="intro.xhtml",
            position='{"chapterSlug": "intro.xhtml", "percentage": 50}',
        ),
    )
    offsets: list[float] = []

    restored = await session.navigate_to_bookmark(
        bookmark, offsets.append, lambda: (1_400.0, 400.0)
    )

    assert restored
    assert session.current_chapter == "intro.xhtml"
    assert offsets == [500]


@pytest.mark.asyncio
async def test_bookmark_with_unreadable_position(
    markdown_book: BookRecord, store: JsonLibraryStore
) -> None:
    session = ReadingSession(markdown_book, store)
    bookmark = store.create_bookmark(markdown_book.id, BookmarkCreate(position="garbage"))

    assert not await session.navigate_to_bookmark(bookmark, lambda y: None, lambda: (0.0, 0.0))
