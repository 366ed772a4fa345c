"""ghflow dashboard: Textual TUI app.

Launch with: python -m ghflow.dashboard
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.text import Text
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Header, Static

from .dashboard import APP_TITLE, DashboardModel
from .data import DataManager
from .events import FetchJobs, FetchRuns, Quit, Request, Result
from .widgets.command_bar import CommandBar
from .widgets.repo_card import CardGrid

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_SECONDS = 30.0

# Keys passed to the model under their Textual names; everything else is
# passed as the typed character.
SPECIAL_KEYS = frozenset({
    "escape", "enter", "tab", "shift+tab", "backspace",
    "up", "down", "left", "right",
    "ctrl+c", "ctrl+n", "ctrl+p",
})


def normalize_key(key: str, character: str | None) -> str:
    """Map a Textual key event onto the names the dashboard model understands."""
    if key in SPECIAL_KEYS:
        return key
    if character and len(character) == 1 and character.isprintable():
        return character
    return key


class GhflowDashboard(App):
    """Grid of repository cards with a command line underneath.

    All input goes through on_key to the DashboardModel; the widgets are
    passive and repainted from the model's view after every event.
    """

    CSS_PATH = Path(__file__).parent / "styles" / "dashboard.tcss"

    TITLE = APP_TITLE

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        model: DashboardModel,
        data_manager: DataManager,
        refresh_interval: float = DEFAULT_REFRESH_SECONDS,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self.model = model
        self._data_manager = data_manager
        self._refresh_interval = refresh_interval
        self._last_error: str | None = None
        self._widgets_ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield CardGrid(id="grid")
        yield CommandBar(id="command-bar")
        yield Static("", id="status-line")
        yield Static("", id="help-line")

    def on_mount(self) -> None:
        self._widgets_ready = True
        self.model.set_size(self.size.width, self.size.height)
        self._dispatch(self.model.start())
        self._schedule_tick()
        self._render_view()

    def on_resize(self, event: events.Resize) -> None:
        self.model.set_size(event.size.width, event.size.height)
        if self._widgets_ready:
            self._render_view()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        key = normalize_key(event.key, event.character)
        self._dispatch(self.model.handle_key(key))
        self._render_view()

    # -- refresh timer -------------------------------------------------------

    def _schedule_tick(self) -> None:
        # One-shot timer, rearmed after each firing so ticks cannot pile up
        self.set_timer(self._refresh_interval, self._tick_refresh)

    def _tick_refresh(self) -> None:
        self._dispatch(self.model.handle_tick())
        self._render_view()
        self._schedule_tick()

    # -- requests ------------------------------------------------------------

    def _dispatch(self, requests: list[Request]) -> None:
        for request in requests:
            if isinstance(request, Quit):
                self.exit()
                return
            if isinstance(request, FetchRuns):
                self._fetch_runs(request)
            elif isinstance(request, FetchJobs):
                self._fetch_jobs(request)

    @work(thread=True)
    def _fetch_runs(self, request: FetchRuns) -> None:
        """Fetch one card's run list in a background thread."""
        result = self._data_manager.fetch_runs(request)
        self.call_from_thread(self._apply_result, result)

    @work(thread=True)
    def _fetch_jobs(self, request: FetchJobs) -> None:
        result = self._data_manager.fetch_jobs(request)
        self.call_from_thread(self._apply_result, result)

    def _apply_result(self, result: Result) -> None:
        """Merge a fetch result into the model (called on UI thread)."""
        if self.model.handle_result(result):
            self._render_view()

    # -- rendering -----------------------------------------------------------

    def _render_view(self) -> None:
        view = self.model.view()
        self.sub_title = self.model.profile_name or ""

        self.query_one(CardGrid).show(view.cards, view.empty_message, self.model.grid.cursor)
        self.query_one(CommandBar).show(view.command)

        status = self.query_one("#status-line", Static)
        status.update(Text(view.error, style="bold red") if view.error else "")
        self.query_one("#help-line", Static).update(Text(view.help_line, style="grey50"))

        if view.error and view.error != self._last_error:
            self.notify(view.error, severity="error", timeout=4)
        self._last_error = view.error
