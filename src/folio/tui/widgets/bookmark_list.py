"""Bookmark panel."""

from __future__ import annotations

from textual.widgets import Label, ListItem, ListView

from folio.storage.models import BookmarkRecord
from folio.tui.state import bookmark_label


class BookmarkItem(ListItem):
    def __init__(self, bookmark: BookmarkRecord, **kwargs) -> None:
        super().__init__(Label(bookmark_label(bookmark)), **kwargs)
        self.bookmark = bookmark


class BookmarkList(ListView):
    """Bookmarks of the open book, newest first."""

    def show(self, bookmarks: list[BookmarkRecord]) -> None:
        self.clear()
        for bookmark in bookmarks:
            self.append(BookmarkItem(bookmark))

    @property
    def selected(self) -> BookmarkRecord | None:
        item = self.highlighted_child
        return item.bookmark if isinstance(item, BookmarkItem) else None
