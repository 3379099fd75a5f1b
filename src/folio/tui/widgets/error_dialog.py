"""Load failure modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ErrorDialog(ModalScreen[str]):
    """Modal dialog reporting a failed load, dismissed with the chosen key."""

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=False),
        Binding("r", "choose('r')", "Retry", show=False),
        Binding("q", "choose('q')", "Quit", show=False),
    ]

    def __init__(
        self,
        title: str,
        message: str,
        options: list[tuple[str, str]] | None = None,
        **kwargs,
    ) -> None:
        """Initialize the dialog.

        Args:
            title: Dialog title
            message: Error message, shown verbatim
            options: List of (key, label) tuples for action buttons
        """
        super().__init__(**kwargs)
        self.dialog_title = title
        self.message = message
        self.options = options or [("r", "Retry"), ("q", "Quit")]

    def compose(self) -> ComposeResult:
        with Container(id="error-dialog"):
            yield Static(f"[bold red]{self.dialog_title}[/]", id="error-title")
            yield Static(self.message, id="error-message", markup=False)
            with Horizontal(id="error-actions"):
                for key, label in self.options:
                    yield Button(f"[{key.upper()}] {label}", id=f"btn-{key}")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id and button_id.startswith("btn-"):
            self.dismiss(button_id.removeprefix("btn-"))

    def action_choose(self, key: str) -> None:
        if any(option_key == key for option_key, _ in self.options):
            self.dismiss(key)

    def action_dismiss(self) -> None:
        self.dismiss("dismiss")
