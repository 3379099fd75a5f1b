"""TUI screens for the reader."""

from folio.tui.screens.reader import ReaderScreen

__all__ = ["ReaderScreen"]
