"""Builders and fakes shared by the ghflow tests."""

from datetime import datetime, timedelta, timezone

from ghflow.config import RepoRef
from ghflow.github import Job, WorkflowRun

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_repo(owner="octo", name="app", path=None):
    return RepoRef(path=path or f"/src/{name}", owner=owner, name=name)


def make_run(run_id=1, number=None, status="completed", conclusion="success",
             branch="main", workflow="CI", minutes_ago=5):
    return WorkflowRun(
        id=run_id,
        name=workflow,
        workflow_name=workflow,
        head_branch=branch,
        run_number=number if number is not None else run_id,
        created_at=NOW - timedelta(minutes=minutes_ago),
        status=status,
        conclusion=conclusion,
    )


def make_job(job_id=1, name="build", status="completed", conclusion="success", seconds=42):
    started = NOW - timedelta(minutes=10)
    return Job(
        id=job_id,
        name=name,
        status=status,
        conclusion=conclusion,
        started_at=started,
        completed_at=started + timedelta(seconds=seconds) if seconds is not None else None,
    )


class FakeResolver:
    """Stands in for repo_utils.resolve_repo: maps paths to RepoRefs."""

    def __init__(self, repos=None, error=None):
        self.repos = dict(repos or {})
        self.error = error
        self.calls = []

    def __call__(self, path):
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.repos.get(path)


class FakeClient:
    """Stands in for GitHubClient: every repo returns the same runs and jobs."""

    def __init__(self, runs=None, jobs=None):
        self.runs = list(runs or [])
        self.jobs = list(jobs or [])
        self.calls = []

    def list_runs(self, owner, name, limit):
        self.calls.append(("runs", owner, name))
        return self.runs[:limit]

    def list_jobs(self, owner, name, run_id):
        self.calls.append(("jobs", owner, name, run_id))
        return list(self.jobs)
