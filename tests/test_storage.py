import json
from pathlib import Path

import pytest

from folio.storage.manager import JsonLibraryStore, NotFound
from folio.storage.models import BookCreate, BookmarkCreate


def add(store: JsonLibraryStore, title: str, **kwargs):
    return store.add_book(
        BookCreate(title=title, format="markdown", file_path=f"/uploads/{title}.md", **kwargs)
    )


# --- Books ---


def test_books_round_trip_through_disk(store: JsonLibraryStore, library_dir: Path) -> None:
    book = add(store, "First Book", author="Ada")

    reopened = JsonLibraryStore(library_dir)

    assert reopened.get_book(book.slug) == book


def test_index_uses_original_field_names(store: JsonLibraryStore, library_dir: Path) -> None:
    book = add(store, "Wire")
    store.create_bookmark(book.id, BookmarkCreate(chapter_anchor="c1", position="{}"))

    data = json.loads((library_dir / "library.json").read_text())

    assert data["books"][0]["filePath"] == "/uploads/Wire.md"
    assert data["bookmarks"][0]["chapterSlug"] == "c1"
    assert data["bookmarks"][0]["bookId"] == book.id


def test_slugs_are_unique(store: JsonLibraryStore) -> None:
    slugs = [add(store, "Same Title").slug for _ in range(3)]

    assert slugs == ["same-title", "same-title-1", "same-title-2"]


def test_slug_keeps_cjk_characters(store: JsonLibraryStore) -> None:
    assert add(store, "三体").slug == "三体"


def test_explicit_slug_is_used(store: JsonLibraryStore) -> None:
    assert add(store, "Anything", slug="custom").slug == "custom"


def test_books_are_listed_newest_first(store: JsonLibraryStore) -> None:
    first = add(store, "Old")
    second = add(store, "New")
    second.created_at = first.created_at.replace(year=first.created_at.year + 1)

    assert [b.slug for b in store.list_books()] == ["new", "old"]


def test_unknown_book_raises(store: JsonLibraryStore) -> None:
    with pytest.raises(NotFound):
        store.get_book("missing")


def test_corrupt_index_starts_empty(library_dir: Path) -> None:
    library_dir.mkdir(parents=True)
    (library_dir / "library.json").write_text("{not json")

    assert JsonLibraryStore(library_dir).list_books() == []


# --- Bookmarks ---


def test_bookmarks_are_scoped_to_their_book(store: JsonLibraryStore) -> None:
    a = add(store, "A")
    b = add(store, "B")
    mark = store.create_bookmark(a.id, BookmarkCreate(title="in A"))

    assert store.list_bookmarks(b.id) == []
    with pytest.raises(NotFound):
        store.delete_bookmark(b.id, mark.id)

    store.delete_bookmark(a.id, mark.id)
    assert store.list_bookmarks(a.id) == []


def test_bookmark_for_unknown_book_raises(store: JsonLibraryStore) -> None:
    with pytest.raises(NotFound):
        store.create_bookmark("nope", BookmarkCreate())


def test_bookmarks_listed_newest_first(store: JsonLibraryStore) -> None:
    book = add(store, "Book")
    older = store.create_bookmark(book.id, BookmarkCreate(title="older"))
    newer = store.create_bookmark(book.id, BookmarkCreate(title="newer"))
    older.created_at = newer.created_at.replace(year=newer.created_at.year - 1)

    assert [b.title for b in store.list_bookmarks(book.id)] == ["newer", "older"]
