"""Main Textual application for the terminal reader."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header

from folio.config import FolioConfig
from folio.core.session import ReadingSession
from folio.storage.manager import JsonLibraryStore
from folio.storage.models import BookRecord
from folio.storage.settings import SettingsStore


class ReaderApp(App):
    """Main application for reading one book."""

    CSS_PATH = "styles.tcss"
    TITLE = "folio"

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        book: BookRecord,
        store: JsonLibraryStore,
        config: FolioConfig | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.theme = "monokai"
        self.folio_config = config or FolioConfig()
        self.session = ReadingSession(book, store, config=self.folio_config)
        self.settings_store = SettingsStore(self.folio_config.library_dir)
        self.settings = self.settings_store.load()
        self.sub_title = book.title

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

    def on_mount(self) -> None:
        from folio.tui.screens import ReaderScreen

        self.push_screen(ReaderScreen())

    def save_settings(self) -> None:
        self.settings_store.save(self.settings)

    def action_quit(self) -> None:
        self.session.cancel()
        self.exit(0)
