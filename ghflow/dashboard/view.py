"""Terminal-independent view records.

The state machines compute what is visible as plain records; widgets turn
these into Rich text. Style names are symbolic and resolved by the widgets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class VisualState(Enum):
    NORMAL = "normal"
    SELECTED = "selected"
    FOCUSED = "focused"
    RUN_DETAIL = "run_detail"


# (text, style name). An empty style name means default text.
Segment = tuple[str, str]


@dataclass
class ViewLine:
    segments: list[Segment] = field(default_factory=list)
    highlighted: bool = False

    @property
    def text(self) -> str:
        return "".join(text for text, _ in self.segments)

    @classmethod
    def of(cls, text: str, style: str = "", highlighted: bool = False) -> "ViewLine":
        return cls([(text, style)], highlighted)


@dataclass
class CardView:
    title: str
    visual: VisualState
    lines: list[ViewLine]
    width: int = 0
    height: int = 0

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)


@dataclass
class SuggestionView:
    text: str
    hint: str = ""
    is_repo: bool = False

    @property
    def display(self) -> str:
        if self.is_repo:
            return f"{self.text} [repo]"
        if self.hint:
            return f"{self.text} {self.hint}"
        return self.text


@dataclass
class CommandView:
    focused: bool
    input: str
    suggestions: list[SuggestionView]
    highlighted: int | None = None
    overflow: bool = False
    hint_line: str = ""


@dataclass
class DashboardView:
    title: str
    cards: list[CardView]
    columns: int
    command: CommandView
    help_line: str
    error: str | None = None
    empty_message: str = ""
