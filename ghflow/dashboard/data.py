"""Data layer for the ghflow dashboard.

Executes fetch requests against the query service. Called synchronously
from a background thread (via Textual's @work), always returns a result
event: query failures are carried in the event's ``error`` field.
"""

from __future__ import annotations

import logging
from typing import Protocol

from ..exceptions import GitHubError
from ..github import Job, WorkflowRun
from .events import FetchJobs, FetchRuns, JobsFetched, RunsFetched

logger = logging.getLogger(__name__)


class QueryService(Protocol):
    def list_runs(self, owner: str, name: str, limit: int) -> list[WorkflowRun]: ...

    def list_jobs(self, owner: str, name: str, run_id: int) -> list[Job]: ...


class DataManager:
    """Runs FetchRuns / FetchJobs requests and wraps the outcome in result events."""

    def __init__(self, client: QueryService):
        self._client = client

    def fetch_runs(self, request: FetchRuns) -> RunsFetched:
        try:
            runs = self._client.list_runs(request.owner, request.name, request.limit)
        except GitHubError as e:
            logger.warning("Fetching runs for %s/%s failed: %s", request.owner, request.name, e)
            return RunsFetched(request.card_index, request.owner, request.name, [], str(e))
        return RunsFetched(request.card_index, request.owner, request.name, list(runs))

    def fetch_jobs(self, request: FetchJobs) -> JobsFetched:
        try:
            jobs = self._client.list_jobs(request.owner, request.name, request.run_id)
        except GitHubError as e:
            logger.warning(
                "Fetching jobs for %s/%s run %s failed: %s",
                request.owner, request.name, request.run_id, e,
            )
            return JobsFetched(request.card_index, request.owner, request.name, request.run_id, [], str(e))
        return JobsFetched(request.card_index, request.owner, request.name, request.run_id, list(jobs))
