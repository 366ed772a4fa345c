"""Card state machine: one repository's run list and run drill-down.

A card moves through Normal -> Selected -> Focused -> RunDetail. The grid
decides which card is Selected/Focused; the card itself handles navigation
within its run list and the job list of one run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..config import RepoRef
from ..github import Job, RunStatus, WorkflowRun
from .events import FetchJobs, Request
from .utils import format_duration, format_time_ago, truncate
from .view import CardView, ViewLine, VisualState

logger = logging.getLogger(__name__)

RUN_LIMIT = 5
MIN_CARD_WIDTH = 20
# Border (2) plus repo name, status line, divider and the "(pos/total)" row
RUN_LIST_CHROME = 6
# Border (2) plus run header, status line, divider, "Jobs:", blank line and help line
JOB_LIST_CHROME = 8

KEYS_DOWN = ("j", "down")
KEYS_UP = ("k", "up")

STATUS_ICONS = {
    RunStatus.SUCCESS: "[ok]",
    RunStatus.FAILURE: "[X]",
    RunStatus.IN_PROGRESS: "[~]",
    RunStatus.PENDING: "[?]",
    RunStatus.CANCELLED: "[-]",
    RunStatus.UNKNOWN: "[.]",
}


def status_icon(status: RunStatus) -> str:
    return STATUS_ICONS.get(status, STATUS_ICONS[RunStatus.UNKNOWN])


def status_dot(status: RunStatus) -> str:
    return "○" if status == RunStatus.UNKNOWN else "●"


def status_style(status: RunStatus) -> str:
    return f"status-{status.value}"


# ---------------------------------------------------------------------------
# Card states
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Normal:
    """Idle and not under the grid cursor."""


@dataclass(frozen=True)
class Selected:
    """Under the grid cursor, not receiving input."""


@dataclass
class Focused:
    """Receiving input, browsing the run list."""
    run_cursor: int = 0
    scroll_offset: int = 0


@dataclass
class RunDetail:
    """Browsing the jobs of one run. Keeps the run-list position for the way back."""
    run: WorkflowRun
    run_cursor: int = 0
    scroll_offset: int = 0
    jobs: list[Job] = field(default_factory=list)
    job_cursor: int = 0
    loading: bool = True
    error: str | None = None


CardState = Normal | Selected | Focused | RunDetail


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _scroll_to(cursor: int, offset: int, window: int) -> int:
    """Smallest change to offset that keeps cursor inside [offset, offset + window)."""
    if cursor < offset:
        return cursor
    if cursor >= offset + window:
        return cursor - window + 1
    return offset


class Card:
    """One tracked repository's status and drill-down state.

    Args:
        repo: The repository shown on this card
        index: Position of the card in the grid, carried on fetch requests
    """

    def __init__(self, repo: RepoRef, index: int = 0):
        self.repo = repo
        self.index = index
        self.runs: list[WorkflowRun] = []
        self.error: str | None = None
        self.width = 0
        self.height = 0
        self.state: CardState = Normal()

    # -- state ---------------------------------------------------------------

    @property
    def visual(self) -> VisualState:
        state = self.state
        if isinstance(state, RunDetail):
            return VisualState.RUN_DETAIL
        if isinstance(state, Focused):
            return VisualState.FOCUSED
        if isinstance(state, Selected):
            return VisualState.SELECTED
        return VisualState.NORMAL

    @property
    def status(self) -> RunStatus:
        return self.runs[0].run_status if self.runs else RunStatus.UNKNOWN

    @property
    def run_cursor(self) -> int:
        if isinstance(self.state, (Focused, RunDetail)):
            return self.state.run_cursor
        return 0

    @property
    def scroll_offset(self) -> int:
        if isinstance(self.state, (Focused, RunDetail)):
            return self.state.scroll_offset
        return 0

    def set_visual(self, visual: VisualState) -> None:
        """Move to Normal, Selected or Focused.

        Entering Focused starts at the top of the run list. Any other target
        drops the focused/drill-down sub-state.
        """
        if visual == VisualState.FOCUSED:
            self.state = Focused()
        elif visual == VisualState.SELECTED:
            self.state = Selected()
        elif visual == VisualState.NORMAL:
            self.state = Normal()
        else:
            raise ValueError("RunDetail is entered by confirming a run, not set directly")

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        state = self.state
        if isinstance(state, (Focused, RunDetail)):
            state.scroll_offset = _scroll_to(state.run_cursor, state.scroll_offset, self.visible_run_count())

    def visible_run_count(self) -> int:
        return max(1, self.height - RUN_LIST_CHROME)

    def visible_job_count(self) -> int:
        return max(1, self.height - JOB_LIST_CHROME)

    # -- input ---------------------------------------------------------------

    def handle_key(self, key: str) -> tuple[bool, list[Request]]:
        """Handle a key while focused.

        Returns:
            (consumed, requests). Keys the card does not use, including escape
            while on the run list, are left for the grid.
        """
        state = self.state
        if isinstance(state, RunDetail):
            return self._handle_detail_key(state, key)
        if isinstance(state, Focused):
            return self._handle_focused_key(state, key)
        return False, []

    def _handle_focused_key(self, state: Focused, key: str) -> tuple[bool, list[Request]]:
        if key in KEYS_DOWN or key in KEYS_UP:
            delta = 1 if key in KEYS_DOWN else -1
            if self.runs:
                state.run_cursor = _clamp(state.run_cursor + delta, 0, len(self.runs) - 1)
                state.scroll_offset = _scroll_to(
                    state.run_cursor, state.scroll_offset, self.visible_run_count()
                )
            return True, []
        if key == "enter":
            if state.run_cursor < len(self.runs):
                run = self.runs[state.run_cursor]
                self.state = RunDetail(
                    run=run,
                    run_cursor=state.run_cursor,
                    scroll_offset=state.scroll_offset,
                )
                logger.debug("Opening run %s of %s", run.id, self.repo.full_name)
                return True, [FetchJobs(self.index, self.repo.owner, self.repo.name, run.id)]
            return True, []
        return False, []

    def _handle_detail_key(self, state: RunDetail, key: str) -> tuple[bool, list[Request]]:
        if key in KEYS_DOWN or key in KEYS_UP:
            delta = 1 if key in KEYS_DOWN else -1
            if state.jobs:
                state.job_cursor = _clamp(state.job_cursor + delta, 0, len(state.jobs) - 1)
            return True, []
        if key == "escape":
            self.state = Focused(run_cursor=state.run_cursor, scroll_offset=state.scroll_offset)
            return True, []
        # Swallow everything else so enter etc. cannot leak to the grid mid-drill-down
        return True, []

    # -- fetched data --------------------------------------------------------

    def apply_runs(self, runs: list[WorkflowRun], error: str | None = None) -> None:
        self.runs = list(runs[:RUN_LIMIT])
        self.error = error
        state = self.state
        if isinstance(state, (Focused, RunDetail)):
            state.run_cursor = _clamp(state.run_cursor, 0, max(0, len(self.runs) - 1))
            state.scroll_offset = _scroll_to(state.run_cursor, min(state.scroll_offset, state.run_cursor),
                                             self.visible_run_count())

    def apply_jobs(self, run_id: int, jobs: list[Job], error: str | None = None) -> bool:
        """Store fetched jobs if the card is still showing that run.

        Returns:
            True if the jobs were applied.
        """
        state = self.state
        if not isinstance(state, RunDetail) or state.run.id != run_id:
            return False
        state.jobs = list(jobs)
        state.error = error
        state.loading = False
        state.job_cursor = _clamp(state.job_cursor, 0, max(0, len(state.jobs) - 1))
        return True

    # -- view ----------------------------------------------------------------

    def view(self, now: datetime | None = None) -> CardView:
        width = max(self.width, MIN_CARD_WIDTH)
        if isinstance(self.state, RunDetail):
            lines = self._detail_lines(self.state, width, now)
        else:
            lines = self._run_list_lines(width, now)
        return CardView(
            title=self.repo.full_name,
            visual=self.visual,
            lines=lines,
            width=self.width,
            height=self.height,
        )

    def _divider(self, width: int) -> ViewLine:
        return ViewLine.of("─" * max(1, width - 4), "divider")

    def _run_list_lines(self, width: int, now: datetime | None) -> list[ViewLine]:
        lines = [ViewLine.of(truncate(self.repo.full_name, max(10, width - 4)), "title")]

        branch = truncate(self.runs[0].head_branch, 15) if self.runs else ""
        status = self.status
        lines.append(ViewLine([(status_dot(status), status_style(status)), (" ", ""), (branch, "branch")]))
        lines.append(self._divider(width))

        if self.error:
            lines.append(ViewLine.of("Error loading", "error"))
            return lines
        if not self.runs:
            lines.append(ViewLine.of("No runs", "dim"))
            return lines

        focused = isinstance(self.state, Focused)
        window = self.visible_run_count()
        start = self.scroll_offset
        for i, run in enumerate(self.runs[start:start + window], start=start):
            lines.append(self._run_line(run, width, focused and i == self.run_cursor, now))

        if len(self.runs) > window:
            lines.append(ViewLine.of(f"({self.run_cursor + 1}/{len(self.runs)})", "dim"))
        return lines

    def _run_line(self, run: WorkflowRun, width: int, selected: bool, now: datetime | None) -> ViewLine:
        branch = truncate(run.head_branch, 12)
        name = truncate(run.display_name, max(6, width - 30 - len(branch)))
        status = run.run_status
        return ViewLine(
            [
                (status_icon(status), status_style(status)),
                (f" #{run.run_number} {name} ", ""),
                (f"({branch})", "dim"),
                (f" {format_time_ago(run.created_at, now)}", ""),
            ],
            highlighted=selected,
        )

    def _detail_lines(self, state: RunDetail, width: int, now: datetime | None) -> list[ViewLine]:
        run = state.run
        status = run.run_status
        lines = [
            ViewLine.of(truncate(f"#{run.run_number} {run.display_name}", max(10, width - 4)), "title"),
            ViewLine([
                (status_icon(status), status_style(status)),
                (" ", ""),
                (truncate(run.head_branch, max(6, width - 16)), "branch"),
                (f" {format_time_ago(run.created_at, now)}", ""),
            ]),
            self._divider(width),
        ]

        window = self.visible_job_count()
        header = "Jobs:"
        if not state.loading and len(state.jobs) > window:
            header += f" ({state.job_cursor + 1}/{len(state.jobs)})"
        lines.append(ViewLine.of(header, "dim"))

        if state.loading:
            lines.append(ViewLine.of("Loading...", "loading"))
        elif state.error:
            lines.append(ViewLine.of("Error loading jobs", "error"))
        elif not state.jobs:
            lines.append(ViewLine.of("No jobs", "dim"))
        else:
            start = max(0, state.job_cursor - window + 1)
            for i, job in enumerate(state.jobs[start:start + window], start=start):
                lines.append(self._job_line(job, width, i == state.job_cursor))

        lines.append(ViewLine.of(""))
        lines.append(ViewLine.of("esc: back", "dim"))
        return lines

    def _job_line(self, job: Job, width: int, selected: bool) -> ViewLine:
        name = truncate(job.name, max(10, width - 20))
        duration = job.duration
        status = job.job_status
        segments = [(status_icon(status), status_style(status)), (f" {name}", "")]
        if duration.total_seconds() > 0:
            segments.append((f" {format_duration(duration)}", "dim"))
        return ViewLine(segments, highlighted=selected)
