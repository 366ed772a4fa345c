"""Maps the view layer's symbolic style names onto Rich styles."""

from __future__ import annotations

from rich.text import Text

from ..view import CardView, ViewLine

STYLES: dict[str, str] = {
    "title": "bold",
    "branch": "grey62",
    "dim": "grey50",
    "divider": "grey42",
    "error": "red",
    "loading": "dark_orange",
    "hint": "italic grey50",
    "repo": "green",
    "status-success": "green",
    "status-failure": "red",
    "status-in_progress": "dark_orange",
    "status-pending": "grey70",
    "status-cancelled": "grey50",
    "status-unknown": "grey50",
}

HIGHLIGHT_STYLE = "bold reverse"


def line_text(line: ViewLine) -> Text:
    text = Text()
    for segment, style in line.segments:
        text.append(segment, style=STYLES.get(style, ""))
    if line.highlighted:
        text.stylize(HIGHLIGHT_STYLE)
    return text


def card_text(view: CardView) -> Text:
    """Render a CardView's lines as a single Rich Text block.

    Lines are cropped rather than wrapped so each ViewLine takes one row.
    """
    text = Text("\n").join(line_text(line) for line in view.lines)
    text.no_wrap = True
    text.overflow = "crop"
    return text
