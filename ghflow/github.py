"""GitHub Actions queries through the gh CLI.

Workflow runs and jobs are fetched with ``gh api``, which reuses the user's
existing gh authentication. Everything here is synchronous; the dashboard
only calls it from background workers.
"""

import json
import logging
import shutil
import subprocess
import zlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from .exceptions import GitHubError

logger = logging.getLogger(__name__)

GH_TIMEOUT_SECONDS = 30


class RunStatus(Enum):
    """Display status derived from GitHub's (status, conclusion) pair."""
    SUCCESS = "success"
    FAILURE = "failure"
    IN_PROGRESS = "in_progress"
    PENDING = "pending"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


_CONCLUSION_STATUS = {
    "success": RunStatus.SUCCESS,
    "failure": RunStatus.FAILURE,
    "cancelled": RunStatus.CANCELLED,
}


def derive_status(raw_status: str | None, conclusion: str | None) -> RunStatus:
    """Map a raw GitHub (status, conclusion) pair onto a RunStatus."""
    raw_status = raw_status or ""
    if raw_status == "completed":
        return _CONCLUSION_STATUS.get(conclusion or "", RunStatus.UNKNOWN)
    if raw_status in ("in_progress", "queued"):
        return RunStatus.IN_PROGRESS
    if raw_status in ("pending", "waiting"):
        return RunStatus.PENDING
    return RunStatus.UNKNOWN


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp into an aware datetime, or None."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # GitHub reports unset times as the zero time on some endpoints
    if dt.year <= 1:
        return None
    return dt


@dataclass(frozen=True)
class WorkflowRun:
    """Snapshot of a single workflow run."""
    id: int
    name: str = ""
    workflow_name: str = ""
    head_branch: str = ""
    run_number: int = 0
    created_at: datetime | None = None
    status: str = ""
    conclusion: str = ""
    html_url: str = ""

    @property
    def display_name(self) -> str:
        return self.workflow_name or self.name

    @property
    def run_status(self) -> RunStatus:
        return derive_status(self.status, self.conclusion)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "WorkflowRun":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "",
            workflow_name=data.get("workflow_name") or "",
            head_branch=data.get("head_branch") or "",
            run_number=int(data.get("run_number") or 0),
            created_at=parse_timestamp(data.get("created_at")),
            status=data.get("status") or "",
            conclusion=data.get("conclusion") or "",
            html_url=data.get("html_url") or "",
        )


@dataclass(frozen=True)
class Job:
    """A single job belonging to a workflow run."""
    id: int
    name: str = ""
    status: str = ""
    conclusion: str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def job_status(self) -> RunStatus:
        return derive_status(self.status, self.conclusion)

    @property
    def duration(self) -> timedelta:
        if self.started_at is None or self.completed_at is None:
            return timedelta(0)
        return self.completed_at - self.started_at

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Job":
        return cls(
            id=int(data.get("id") or 0),
            name=data.get("name") or "",
            status=data.get("status") or "",
            conclusion=data.get("conclusion") or "",
            started_at=parse_timestamp(data.get("started_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
        )


def run_gh(args: list[str], timeout: int = GH_TIMEOUT_SECONDS) -> subprocess.CompletedProcess:
    """Run a gh command.

    Args:
        args: gh command arguments (without 'gh')
        timeout: Seconds before the command is abandoned

    Returns:
        CompletedProcess instance (never raises on non-zero exit)
    """
    cmd = ["gh"] + args
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        check=False,
        timeout=timeout,
    )


def is_gh_installed() -> bool:
    return shutil.which("gh") is not None


def is_authenticated() -> bool:
    try:
        return run_gh(["auth", "status"]).returncode == 0
    except (OSError, subprocess.SubprocessError):
        return False


class GitHubClient:
    """Query service for workflow runs and jobs, backed by ``gh api``."""

    def _api(self, endpoint: str) -> dict[str, Any]:
        try:
            result = run_gh(["api", endpoint])
        except subprocess.TimeoutExpired as e:
            raise GitHubError(f"gh api timed out: {endpoint}") from e
        except (OSError, subprocess.SubprocessError) as e:
            raise GitHubError(f"gh api failed: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise GitHubError(f"gh api failed: {stderr or 'exit ' + str(result.returncode)}", stderr)

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise GitHubError(f"failed to parse response: {e}") from e
        if not isinstance(data, dict):
            raise GitHubError(f"unexpected response from {endpoint}")
        return data

    def list_runs(self, owner: str, name: str, limit: int) -> list[WorkflowRun]:
        data = self._api(f"repos/{owner}/{name}/actions/runs?per_page={limit}")
        runs = [WorkflowRun.from_api(r) for r in data.get("workflow_runs") or []]
        return runs[:limit]

    def list_jobs(self, owner: str, name: str, run_id: int) -> list[Job]:
        data = self._api(f"repos/{owner}/{name}/actions/runs/{run_id}/jobs")
        return [Job.from_api(j) for j in data.get("jobs") or []]

    def is_authenticated(self) -> bool:
        return is_authenticated()

    def is_tool_installed(self) -> bool:
        return is_gh_installed()


# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

_DEMO_WORKFLOWS = ["CI", "Lint", "Release", "Deploy to staging", "Nightly integration tests"]
_DEMO_BRANCHES = ["main", "develop", "feature/grid-navigation", "fix/flaky-timeout", "renovate/textual-1.x"]
_DEMO_JOBS = ["build", "test (3.10)", "test (3.12)", "lint", "package", "publish-artifacts"]
_DEMO_STATES = [
    ("completed", "success"),
    ("completed", "success"),
    ("completed", "failure"),
    ("in_progress", ""),
    ("queued", ""),
    ("completed", "cancelled"),
    ("waiting", ""),
]


class DemoGitHubClient:
    """Deterministic stand-in for GitHubClient, for running without gh."""

    def __init__(self, now: datetime | None = None):
        self._now = now

    def _clock(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    def list_runs(self, owner: str, name: str, limit: int) -> list[WorkflowRun]:
        seed = zlib.crc32(f"{owner}/{name}".encode())
        now = self._clock()
        runs = []
        for i in range(limit):
            status, conclusion = _DEMO_STATES[(seed + i) % len(_DEMO_STATES)]
            runs.append(WorkflowRun(
                id=seed * 100 + i,
                name=_DEMO_WORKFLOWS[(seed + i) % len(_DEMO_WORKFLOWS)],
                workflow_name=_DEMO_WORKFLOWS[(seed + i) % len(_DEMO_WORKFLOWS)],
                head_branch=_DEMO_BRANCHES[(seed // 7 + i) % len(_DEMO_BRANCHES)],
                run_number=400 - i * 3 + seed % 50,
                created_at=now - timedelta(minutes=(i * 47) + seed % 30),
                status=status,
                conclusion=conclusion,
            ))
        return runs

    def list_jobs(self, owner: str, name: str, run_id: int) -> list[Job]:
        started = self._clock() - timedelta(hours=1)
        jobs = []
        for i, job_name in enumerate(_DEMO_JOBS[: 2 + run_id % 5]):
            status, conclusion = _DEMO_STATES[(run_id + i) % len(_DEMO_STATES)]
            completed = started + timedelta(seconds=35 + i * 211) if status == "completed" else None
            jobs.append(Job(
                id=run_id * 10 + i,
                name=job_name,
                status=status,
                conclusion=conclusion,
                started_at=started,
                completed_at=completed,
            ))
        return jobs

    def is_authenticated(self) -> bool:
        return True

    def is_tool_installed(self) -> bool:
        return True
