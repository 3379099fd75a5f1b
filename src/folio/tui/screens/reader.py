"""Reading screen: TOC sidebar, content pane and bookmarks."""

from __future__ import annotations

import asyncio
import logging

from rich.markup import escape
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, ListView, Markdown, Static, Tree

from folio.core.content_processor import ContentProcessor
from folio.models.position import ScrollMetrics
from folio.tui.state import CONTENT_COLUMNS, pane_content, status_line
from folio.tui.widgets import BookmarkItem, BookmarkList, ErrorDialog, TocTree

log = logging.getLogger(__name__)


class ReaderScreen(Screen):
    """Screen showing one book."""

    BINDINGS = [
        Binding("b", "add_bookmark", "Bookmark", show=True),
        Binding("d", "delete_bookmark", "Delete bookmark", show=False),
        Binding("n", "next_chapter", "Next", show=True),
        Binding("p", "previous_chapter", "Previous", show=True),
        Binding("t", "toggle_sidebar", "Contents", show=True),
        Binding("plus,equals_sign", "font_larger", "A+", show=True),
        Binding("minus", "font_smaller", "A-", show=True),
        Binding("a", "reveal_all", "Load all", show=False),
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.processor = ContentProcessor()

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            with Vertical(id="sidebar"):
                yield Static("[bold cyan]Contents[/]", classes="panel-title")
                yield TocTree(id="toc")
                yield Static("[bold cyan]Bookmarks[/]", classes="panel-title")
                yield BookmarkList(id="bookmarks")
            with VerticalScroll(id="content-scroll"):
                with Vertical(id="document-pane"):
                    yield Markdown(id="document")
                    yield Static(id="plain-text", markup=False)
        yield Static(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self._apply_settings()
        self.watch(self.scroll_view, "scroll_y", self._on_content_scrolled, init=False)
        self.load_book()

    @property
    def session(self):
        return self.app.session

    @property
    def scroll_view(self) -> VerticalScroll:
        return self.query_one("#content-scroll", VerticalScroll)

    # Loading

    @work(exclusive=True, group="load")
    async def load_book(self) -> None:
        toc = self.query_one(TocTree)
        toc.load_entries([])
        await self._show_content()
        document = await self.session.load()
        if document is None and self.session.state == "error":
            await self._show_content()
            self.app.push_screen(
                ErrorDialog("Failed to open book", self.session.error or "Unknown error"),
                self._on_error_choice,
            )
            return
        if document is None:
            return
        self.session.refresh_bookmarks()
        self.query_one(BookmarkList).show(self.session.bookmarks)
        await self._show_content()
        await self._settled()
        toc.load_entries(document.toc)

    def _on_error_choice(self, choice: str | None) -> None:
        if choice == "r":
            self.load_book()
        elif choice == "q":
            self.app.exit(1)

    # Content pane

    async def _show_content(self) -> None:
        content = pane_content(self.session, self.processor)
        markdown = self.query_one("#document", Markdown)
        plain = self.query_one("#plain-text", Static)

        markdown.display = content.kind != "text"
        plain.display = content.kind == "text"
        if content.kind == "text":
            plain.update(content.text or "")
        else:
            await markdown.update(content.markdown)
        self._update_status()

    async def _settled(self) -> None:
        """Wait until the content pane has been laid out."""
        refreshed = asyncio.Event()
        self.call_after_refresh(refreshed.set)
        await refreshed.wait()

    def _update_status(self) -> None:
        self.query_one("#status-bar", Static).update(
            status_line(self.session, self.app.settings)
        )

    def _metrics(self) -> ScrollMetrics:
        scroll = self.scroll_view
        return ScrollMetrics(
            scroll_y=scroll.scroll_y,
            document_height=scroll.virtual_size.height,
            viewport_height=scroll.size.height,
        )

    def _measure(self) -> tuple[float, float]:
        metrics = self._metrics()
        return metrics.document_height, metrics.viewport_height

    def _scroll_to(self, offset: float) -> None:
        self.scroll_view.scroll_to(y=offset, animate=False)

    def _on_content_scrolled(self, scroll_y: float) -> None:
        metrics = self._metrics()
        growth = self.session.growth
        if growth.on_scroll(scroll_y, metrics.viewport_height, metrics.document_height):
            self.run_worker(self._mount_growth(), group="grow")

    async def _mount_growth(self) -> None:
        await self._show_content()
        await self._settled()
        self.session.growth.commit()

    # Navigation

    async def _switch_and_mount(self, anchor: str) -> None:
        if self.session.switch_chapter(anchor):
            await self._show_content()
            await self._settled()

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        anchor = event.node.data
        if anchor:
            self.run_worker(self._go_to_anchor(anchor), exclusive=True, group="nav")

    async def _go_to_anchor(self, anchor: str) -> None:
        document = self.session.document
        if document is None:
            return
        if document.format == "epub":
            await self._switch_and_mount(anchor)
            self.scroll_view.scroll_home(animate=False)
            return
        heading = next((h for h in document.headings if h.id == anchor), None)
        if heading is None:
            return
        markdown = self.query_one("#document", Markdown)
        for _level, label, block_id in markdown.table_of_contents or []:
            if str(label).strip() == heading.text and block_id:
                self.scroll_view.scroll_to_widget(
                    markdown.query_one(f"#{block_id}"), top=True, animate=False
                )
                return

    def action_next_chapter(self) -> None:
        if self.session.next_chapter():
            self.run_worker(self._chapter_changed(), exclusive=True, group="nav")

    def action_previous_chapter(self) -> None:
        if self.session.previous_chapter():
            self.run_worker(self._chapter_changed(), exclusive=True, group="nav")

    async def _chapter_changed(self) -> None:
        await self._show_content()
        self.scroll_view.scroll_home(animate=False)

    def action_reveal_all(self) -> None:
        document = self.session.document
        if document is not None and document.format == "txt":
            self.session.text_renderer.reveal_all()
            self.run_worker(self._show_content(), group="grow")

    # Bookmarks

    def action_add_bookmark(self) -> None:
        if self.session.state != "ready":
            return
        try:
            bookmark = self.session.add_bookmark(self._metrics())
        except Exception as e:
            log.warning("Saving bookmark failed: %s", e)
            self.notify(f"Could not save bookmark: {escape(str(e))}", severity="error")
            return
        self.query_one(BookmarkList).show(self.session.bookmarks)
        self.notify(f"Bookmarked: {escape(bookmark.title or '')}")

    def action_delete_bookmark(self) -> None:
        bookmarks = self.query_one(BookmarkList)
        selected = bookmarks.selected
        if selected is None:
            return
        try:
            self.session.delete_bookmark(selected.id)
        except Exception as e:
            log.warning("Deleting bookmark %s failed: %s", selected.id, e)
            self.notify(f"Could not delete bookmark: {escape(str(e))}", severity="error")
        bookmarks.show(self.session.bookmarks)

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, BookmarkItem):
            self.run_worker(
                self.session.navigate_to_bookmark(
                    event.item.bookmark,
                    self._scroll_to,
                    self._measure,
                    switch_chapter=self._switch_and_mount,
                ),
                exclusive=True,
                group="nav",
            )

    # Settings

    def _apply_settings(self) -> None:
        settings = self.app.settings
        columns = CONTENT_COLUMNS[settings.content_width] * 16 // settings.font_size
        self.query_one("#document-pane").styles.max_width = columns
        self.query_one("#sidebar").display = settings.sidebar_open
        self._update_status()

    def _settings_changed(self) -> None:
        self.app.save_settings()
        self._apply_settings()

    def action_toggle_sidebar(self) -> None:
        self.app.settings.toggle_sidebar()
        self._settings_changed()

    def action_font_larger(self) -> None:
        self.app.settings.increase_font_size()
        self._settings_changed()

    def action_font_smaller(self) -> None:
        self.app.settings.decrease_font_size()
        self._settings_changed()

    def action_quit(self) -> None:
        self.session.cancel()
        self.app.exit(0)
