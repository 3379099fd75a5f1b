"""Bookmark commands: list, add and delete bookmarks of a stored book."""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from folio.config import FolioConfig
from folio.core.session import ReadingSession
from folio.models.position import ScrollMetrics
from folio.storage.manager import JsonLibraryStore
from folio.storage.models import BookmarkRecord


def _position_label(bookmark: BookmarkRecord) -> str:
    snapshot = bookmark.snapshot()
    if snapshot is None:
        return "[dim]unreadable[/]"
    if snapshot.percentage is not None:
        return f"{snapshot.percentage}%"
    return f"y={snapshot.scroll_y:g}"


def execute_list_bookmarks(slug: str, store: JsonLibraryStore, console: Console) -> None:
    book = store.get_book(slug)
    bookmarks = store.list_bookmarks(book.id)

    if not bookmarks:
        console.print(f"[dim]No bookmarks for {escape(book.title)}[/]")
        return

    table = Table(title=f"Bookmarks: {escape(book.title)}", show_header=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Chapter", style="dim")
    table.add_column("Position", justify="right")
    table.add_column("Created", style="dim")

    for bookmark in bookmarks:
        title = escape(bookmark.title or "")
        if bookmark.note:
            title = f"{title}\n[dim]{escape(bookmark.note)}[/]"
        table.add_row(
            bookmark.id[:8],
            title,
            escape(bookmark.chapter_anchor or ""),
            _position_label(bookmark),
            bookmark.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def execute_add_bookmark(
    slug: str,
    metrics: ScrollMetrics,
    store: JsonLibraryStore,
    config: FolioConfig,
    console: Console,
    chapter: str | None = None,
    note: str | None = None,
) -> BookmarkRecord:
    """Capture ``metrics`` at ``chapter`` as a bookmark.

    Only EPUB chapter titles are looked up; the document is not loaded for
    other formats.
    """
    book = store.get_book(slug)
    session = ReadingSession(book, store, config=config)
    if chapter:
        session.current_chapter = chapter
    bookmark = session.add_bookmark(metrics, note=note)
    console.print(f"[green]Added bookmark[/] {bookmark.id[:8]}: {escape(bookmark.title or '')}")
    return bookmark


def resolve_bookmark_id(prefix: str, bookmarks: list[BookmarkRecord]) -> str | None:
    """Expand a unique ID prefix as printed by the list command."""
    matches = [b.id for b in bookmarks if b.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


def execute_delete_bookmark(
    slug: str, bookmark_id: str, store: JsonLibraryStore, console: Console
) -> None:
    book = store.get_book(slug)
    full_id = resolve_bookmark_id(bookmark_id, store.list_bookmarks(book.id)) or bookmark_id
    store.delete_bookmark(book.id, full_id)
    console.print(f"[green]Deleted bookmark[/] {full_id[:8]}")
