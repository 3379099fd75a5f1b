"""Table of contents sidebar."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from folio.models.book import TOCEntry


class TocTree(Tree[str]):
    """Tree of TOC entries; each node's data is the entry's anchor."""

    def __init__(self, **kwargs) -> None:
        super().__init__("Contents", **kwargs)
        self.show_root = False

    def load_entries(self, entries: list[TOCEntry]) -> None:
        self.clear()
        self._add_entries(self.root, entries)
        self.root.expand_all()

    def _add_entries(self, parent: TreeNode[str], entries: list[TOCEntry]) -> None:
        for entry in entries:
            if entry.children:
                node = parent.add(Text(entry.title), data=entry.anchor)
                self._add_entries(node, entry.children)
            else:
                parent.add_leaf(Text(entry.title), data=entry.anchor)
