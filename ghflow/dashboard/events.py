"""Request and result messages exchanged between the model and the event loop.

The model never fetches anything itself. It returns requests; the app runs
them in background workers and feeds the matching result back in. Results
carry the originating card index (and repo identity) so they can be matched
against the current grid, which may have been rebuilt in the meantime.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..github import Job, WorkflowRun


@dataclass(frozen=True)
class FetchRuns:
    card_index: int
    owner: str
    name: str
    limit: int


@dataclass(frozen=True)
class FetchJobs:
    card_index: int
    owner: str
    name: str
    run_id: int


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class RunsFetched:
    card_index: int
    owner: str
    name: str
    runs: list[WorkflowRun] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class JobsFetched:
    card_index: int
    owner: str
    name: str
    run_id: int
    jobs: list[Job] = field(default_factory=list)
    error: str | None = None


Request = FetchRuns | FetchJobs | Quit
Result = RunsFetched | JobsFetched
