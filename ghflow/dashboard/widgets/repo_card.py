"""Repository card widget and the grid container that lays cards out."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Static

from ..view import CardView, VisualState
from .palette import card_text


class RepoCard(Static):
    """Paints one CardView. Border style follows the card's visual state."""

    DEFAULT_CSS = """
    RepoCard {
        width: 1fr;
        border: round $secondary;
        padding: 0 1;
    }
    RepoCard.-selected {
        border: round $accent;
    }
    RepoCard.-focused {
        border: heavy $primary;
    }
    """

    def __init__(self, view: CardView, **kwargs: object) -> None:
        super().__init__(card_text(view), **kwargs)
        self._apply_state(view)

    def show(self, view: CardView) -> None:
        self._apply_state(view)
        self.update(card_text(view))

    def _apply_state(self, view: CardView) -> None:
        self.card_view = view
        self.set_class(view.visual == VisualState.SELECTED, "-selected")
        self.set_class(view.visual in (VisualState.FOCUSED, VisualState.RUN_DETAIL), "-focused")
        if view.height > 0:
            self.styles.height = view.height


class EmptyCell(Static):
    """Filler for the unused cells of a short last row."""

    DEFAULT_CSS = """
    EmptyCell {
        width: 1fr;
    }
    """


class CardGrid(VerticalScroll):
    """Rows of RepoCards, `columns` wide. Scrolls when rows overflow."""

    can_focus = False

    DEFAULT_CSS = """
    CardGrid {
        height: 1fr;
    }
    CardGrid .grid-row {
        height: auto;
    }
    CardGrid #empty-grid {
        width: 100%;
        height: 100%;
        content-align: center middle;
        color: $text-muted;
    }
    """

    def __init__(self, columns: int = 3, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._columns = columns
        self._views: list[CardView] = []
        self._empty_message = ""

    def compose(self) -> ComposeResult:
        if not self._views:
            yield Static(self._empty_message, id="empty-grid")
            return
        for start in range(0, len(self._views), self._columns):
            row = self._views[start:start + self._columns]
            with Horizontal(classes="grid-row"):
                for offset, view in enumerate(row):
                    yield RepoCard(view, id=f"card-{start + offset}")
                for _ in range(self._columns - len(row)):
                    yield EmptyCell()

    def show(self, views: list[CardView], empty_message: str = "", cursor: int | None = None) -> None:
        """Update the cards in place, or rebuild when the card set changed."""
        titles = [v.title for v in views]
        if titles != [v.title for v in self._views] or empty_message != self._empty_message:
            self._views = list(views)
            self._empty_message = empty_message
            self.refresh(recompose=True)
            return

        self._views = list(views)
        for card in self.query(RepoCard):
            index = int((card.id or "card-0").split("-")[1])
            if index < len(views):
                card.show(views[index])
                if index == cursor:
                    card.scroll_visible(animate=False)
