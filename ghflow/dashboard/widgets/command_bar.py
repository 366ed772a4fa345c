"""Command line widget: input box plus suggestion list."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from ..view import CommandView
from .palette import STYLES

PROMPT = "> "
CURSOR = "█"
PLACEHOLDER = "Type / to enter command..."


def command_text(view: CommandView) -> Text:
    text = Text()
    if not view.focused:
        text.append(PROMPT + PLACEHOLDER, style=STYLES["dim"])
        return text

    text.append(PROMPT, style="bold blue")
    text.append(view.input + CURSOR)

    for i, suggestion in enumerate(view.suggestions):
        selected = view.highlighted == i
        text.append("\n")
        text.append("> " if selected else "  ", style="bold magenta" if selected else STYLES["dim"])
        text.append(suggestion.text, style="bold magenta" if selected else STYLES["dim"])
        if suggestion.is_repo:
            text.append(" [repo]", style=STYLES["repo"])
        elif suggestion.hint:
            text.append(f" {suggestion.hint}", style=STYLES["hint"])
    if view.overflow:
        text.append("\n  ...", style=STYLES["dim"])
    if view.hint_line:
        text.append("\n  " + view.hint_line, style=STYLES["dim"])
    return text


class CommandBar(Static):
    """Shows the command overlay, or a placeholder prompt when inactive."""

    DEFAULT_CSS = """
    CommandBar {
        height: auto;
        border: round $primary;
        padding: 0 1;
    }
    """

    def show(self, view: CommandView) -> None:
        self.set_class(view.focused, "-active")
        self.update(command_text(view))
