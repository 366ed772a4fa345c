"""Grid controller: fixed-column arrangement of cards with a single cursor."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Iterable

from ..config import RepoRef
from .card import RUN_LIMIT, Card
from .events import FetchRuns, JobsFetched, Request, RunsFetched
from .view import CardView, VisualState

logger = logging.getLogger(__name__)

GRID_COLS = 3
# Card height is sized so this many rows fit the grid area; further rows scroll
GRID_VISIBLE_ROWS = 2

# key -> (dx, dy)
NAVIGATION_KEYS = {
    "h": (-1, 0),
    "left": (-1, 0),
    "l": (1, 0),
    "right": (1, 0),
    "k": (0, -1),
    "up": (0, -1),
    "j": (0, 1),
    "down": (0, 1),
}


class GridState(Enum):
    NAVIGATING = "navigating"
    CARD_FOCUSED = "card_focused"


class Grid:
    """Cards laid out GRID_COLS wide, with cursor movement and focus delegation.

    Args:
        repos: Repositories to show, one card each, in order
        previous: Grid being replaced. Runs already fetched for repos that
            survive the rebuild are carried over so cards don't go blank.
    """

    def __init__(self, repos: Iterable[RepoRef], previous: "Grid | None" = None):
        self.cards = [Card(repo, i) for i, repo in enumerate(repos)]
        self.state = GridState.NAVIGATING
        self.cursor: int | None = 0 if self.cards else None
        self.width = 0
        self.height = 0

        if previous is not None:
            known = {card.repo.key: card for card in previous.cards}
            for card in self.cards:
                old = known.get(card.repo.key)
                if old is not None:
                    card.apply_runs(old.runs, old.error)
            self.set_size(previous.width, previous.height)

        if self.cards:
            self.cards[0].set_visual(VisualState.SELECTED)

    @property
    def cols(self) -> int:
        return GRID_COLS

    @property
    def rows(self) -> int:
        return -(-len(self.cards) // GRID_COLS)

    @property
    def selected_card(self) -> Card | None:
        if self.cursor is None:
            return None
        return self.cards[self.cursor]

    def card_size(self) -> tuple[int, int]:
        return self.width // GRID_COLS, self.height // GRID_VISIBLE_ROWS

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        card_width, card_height = self.card_size()
        for card in self.cards:
            card.set_size(card_width, card_height)

    # -- navigation ----------------------------------------------------------

    def move_cursor(self, dx: int, dy: int) -> None:
        if self.cursor is None:
            return
        count = len(self.cards)
        col = self.cursor % GRID_COLS
        row = self.cursor // GRID_COLS

        new_col = max(0, min(GRID_COLS - 1, col + dx))
        max_row = (count - 1) // GRID_COLS
        new_row = max(0, min(max_row, row + dy))

        new_cursor = new_row * GRID_COLS + new_col
        if new_cursor > count - 1:
            # Short last row: land on the last card rather than an empty cell
            new_cursor = count - 1

        if new_cursor != self.cursor:
            self.cards[self.cursor].set_visual(VisualState.NORMAL)
            self.cursor = new_cursor
            self.cards[self.cursor].set_visual(VisualState.SELECTED)

    def confirm(self) -> None:
        if self.state != GridState.NAVIGATING or self.cursor is None:
            return
        self.cards[self.cursor].set_visual(VisualState.FOCUSED)
        self.state = GridState.CARD_FOCUSED

    def cancel(self) -> None:
        if self.state != GridState.CARD_FOCUSED or self.cursor is None:
            return
        self.cards[self.cursor].set_visual(VisualState.SELECTED)
        self.state = GridState.NAVIGATING

    def handle_key(self, key: str) -> list[Request]:
        if self.cursor is None:
            return []

        if self.state == GridState.CARD_FOCUSED:
            consumed, requests = self.cards[self.cursor].handle_key(key)
            if not consumed and key == "escape":
                self.cancel()
            return requests

        if key in NAVIGATION_KEYS:
            self.move_cursor(*NAVIGATION_KEYS[key])
        elif key == "enter":
            self.confirm()
        return []

    # -- data ----------------------------------------------------------------

    def refresh_all(self) -> list[Request]:
        return [
            FetchRuns(i, card.repo.owner, card.repo.name, RUN_LIMIT)
            for i, card in enumerate(self.cards)
        ]

    def _card_for(self, index: int, owner: str, name: str) -> Card | None:
        if not 0 <= index < len(self.cards):
            return None
        card = self.cards[index]
        if card.repo.key != (owner, name):
            return None
        return card

    def apply_runs(self, event: RunsFetched) -> bool:
        """Merge a run-list result. Results for cards that no longer exist are dropped."""
        card = self._card_for(event.card_index, event.owner, event.name)
        if card is None:
            logger.debug("Dropping stale runs for %s/%s (index %d)", event.owner, event.name, event.card_index)
            return False
        card.apply_runs(event.runs, event.error)
        return True

    def apply_jobs(self, event: JobsFetched) -> bool:
        card = self._card_for(event.card_index, event.owner, event.name)
        if card is None:
            logger.debug("Dropping stale jobs for %s/%s (index %d)", event.owner, event.name, event.card_index)
            return False
        return card.apply_jobs(event.run_id, event.jobs, event.error)

    def view(self, now: datetime | None = None) -> list[CardView]:
        return [card.view(now) for card in self.cards]
