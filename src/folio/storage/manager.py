"""JSON-file persistence for books and bookmarks."""

import logging
from pathlib import Path
from typing import Protocol

from markdown.extensions.toc import slugify_unicode
from pydantic import ValidationError

from folio.storage.models import (
    BookCreate,
    BookmarkCreate,
    BookmarkRecord,
    BookRecord,
    LibraryIndex,
)

log = logging.getLogger(__name__)


class NotFound(LookupError):
    """Raised when a book or bookmark does not exist."""


class LibraryStore(Protocol):
    """Persistence operations the reading session depends on."""

    def get_book(self, slug: str) -> BookRecord: ...

    def list_bookmarks(self, book_id: str) -> list[BookmarkRecord]: ...

    def create_bookmark(self, book_id: str, data: BookmarkCreate) -> BookmarkRecord: ...

    def delete_bookmark(self, book_id: str, bookmark_id: str) -> None: ...


class JsonLibraryStore:
    """Library store backed by a single ``library.json`` file."""

    INDEX_FILE = "library.json"

    def __init__(self, library_dir: Path):
        self.library_dir = library_dir
        self.index_path = library_dir / self.INDEX_FILE
        self._index: LibraryIndex | None = None

    def _ensure_dir(self) -> None:
        self.library_dir.mkdir(parents=True, exist_ok=True)

    def _load_index(self) -> LibraryIndex:
        """Load or create the library index."""
        if self._index is not None:
            return self._index

        if self.index_path.exists():
            try:
                self._index = LibraryIndex.model_validate_json(self.index_path.read_text())
            except ValidationError:
                log.warning("Unreadable library index at %s, starting empty", self.index_path)
                self._index = LibraryIndex()
        else:
            self._index = LibraryIndex()

        return self._index

    def _save_index(self) -> None:
        self._ensure_dir()
        index = self._load_index()
        self.index_path.write_text(index.model_dump_json(indent=2, by_alias=True))

    # Books

    def list_books(self) -> list[BookRecord]:
        """All books, newest first."""
        return sorted(self._load_index().books, key=lambda b: b.created_at, reverse=True)

    def get_book(self, slug: str) -> BookRecord:
        for book in self._load_index().books:
            if book.slug == slug:
                return book
        raise NotFound(f"Book not found: {slug}")

    def add_book(self, data: BookCreate) -> BookRecord:
        index = self._load_index()
        slug = self._unique_slug(data.slug or data.title, {b.slug for b in index.books})
        book = BookRecord(
            slug=slug,
            title=data.title,
            author=data.author,
            description=data.description,
            cover=data.cover,
            format=data.format,
            file_path=data.file_path,
            chapters=data.chapters,
        )
        index.books.append(book)
        self._save_index()
        log.info("Added book %s (%s)", book.slug, book.format)
        return book

    @staticmethod
    def _unique_slug(value: str, taken: set[str]) -> str:
        base = slugify_unicode(value, "-") or "book"
        slug = base
        counter = 1
        while slug in taken:
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    # Bookmarks

    def _require_book_id(self, book_id: str) -> None:
        if not any(b.id == book_id for b in self._load_index().books):
            raise NotFound(f"Book not found: {book_id}")

    def list_bookmarks(self, book_id: str) -> list[BookmarkRecord]:
        """Bookmarks of one book, newest first."""
        self._require_book_id(book_id)
        bookmarks = [b for b in self._load_index().bookmarks if b.book_id == book_id]
        return sorted(bookmarks, key=lambda b: b.created_at, reverse=True)

    def create_bookmark(self, book_id: str, data: BookmarkCreate) -> BookmarkRecord:
        self._require_book_id(book_id)
        bookmark = BookmarkRecord(
            book_id=book_id,
            chapter_anchor=data.chapter_anchor,
            position=data.position,
            title=data.title,
            note=data.note,
        )
        self._load_index().bookmarks.append(bookmark)
        self._save_index()
        return bookmark

    def delete_bookmark(self, book_id: str, bookmark_id: str) -> None:
        """Delete a bookmark owned by ``book_id``."""
        self._require_book_id(book_id)
        index = self._load_index()
        remaining = [
            b for b in index.bookmarks if not (b.id == bookmark_id and b.book_id == book_id)
        ]
        if len(remaining) == len(index.bookmarks):
            raise NotFound(f"Bookmark not found: {bookmark_id}")
        index.bookmarks = remaining
        self._save_index()
