"""Custom widgets for the reader TUI."""

from folio.tui.widgets.bookmark_list import BookmarkItem, BookmarkList
from folio.tui.widgets.error_dialog import ErrorDialog
from folio.tui.widgets.toc_tree import TocTree

__all__ = ["BookmarkItem", "BookmarkList", "ErrorDialog", "TocTree"]
