from typing import Dict, Literal, Optional, Tuple, override

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
Variant = Literal["primary", "default", "success", "warning", "error"]


class DialogModal(ModalScreen[bool]):
    """
    Confirmation box with one or two answers.
    Dismisses with True for the primary answer, False otherwise (escape included).
    """

    # (primary, secondary) button variants per tone
    TONE_VARIANTS: Dict[Tone, Tuple[Variant, Variant]] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: Optional[str] = None,
        tone: Tone = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        primary, secondary = self.TONE_VARIANTS[self.tone]
        with Container(id="div-dialog", classes=f"tone-{self.tone}"):
            yield Label(self.caption, id="caption")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(self.secondary_text, variant=secondary, id="btn-secondary")
                yield Button(self.primary_text, variant=primary, id="btn-primary")

    def on_mount(self):
        # destructive questions start on the safe answer
        safe_first = self.tone == "error" and self.secondary_text
        self.query_one("#btn-secondary" if safe_first else "#btn-primary").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.stop()
            self.dismiss(False)

    @on(Button.Pressed, "#btn-primary")
    def handle_primary(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#btn-secondary")
    def handle_secondary(self) -> None:
        self.dismiss(False)


class AlertModal(DialogModal):
    """Acknowledge-only box, used for printer failures."""

    def __init__(self, caption: str, tone: Tone = "error"):
        super().__init__(caption, primary_text="OK", tone=tone)


class QuitDialogModal(DialogModal):
    def __init__(self, open_lines: int = 0):
        caption = "Quit the point of sale?"
        if open_lines:
            caption += f" The current cart ({open_lines} lines) will be lost."
        super().__init__(caption, "Quit", "Stay", "error")

    @override
    def handle_primary(self) -> None:
        self.post_message(QuitRequestedMessage())
        self.dismiss(True)
