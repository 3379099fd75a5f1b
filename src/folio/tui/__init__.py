"""Textual TUI for reading books from the library."""

from folio.tui.app import ReaderApp

__all__ = ["ReaderApp"]
