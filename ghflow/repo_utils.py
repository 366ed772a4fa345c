"""Local git inspection: resolve a directory into a GitHub owner/name pair."""

import logging
import os
import re
import subprocess
from pathlib import Path

from .config import RepoRef
from .exceptions import RepoResolutionError

logger = logging.getLogger(__name__)

_SSH_PATTERN = re.compile(r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?/?$")
_HTTPS_PATTERN = re.compile(r"(?:https|ssh)://(?:[^@/]+@)?github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")


def run_git(args: list[str], cwd: Path | str | None = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command.

    Args:
        args: Git command arguments (without 'git')
        cwd: Working directory for the command
        check: Raise exception on non-zero exit

    Returns:
        CompletedProcess instance
    """
    cmd = ["git"] + args
    return subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
        timeout=30,
    )


def is_git_repo(path: Path | str) -> bool:
    """True if path has a .git directory."""
    return (Path(path) / ".git").is_dir()


def parse_github_url(url: str) -> tuple[str, str] | None:
    """Extract (owner, name) from a GitHub SSH or HTTPS remote URL."""
    url = url.strip()
    for pattern in (_SSH_PATTERN, _HTTPS_PATTERN):
        match = pattern.match(url)
        if match:
            return match.group(1), match.group(2)
    return None


def resolve_repo(path: Path | str) -> RepoRef | None:
    """Resolve a directory into a RepoRef using its origin remote.

    Returns:
        RepoRef, or None if the path is not a git repo or origin is not on GitHub.

    Raises:
        RepoResolutionError: If the origin remote cannot be read.
    """
    path = Path(os.path.expanduser(str(path)))
    if not is_git_repo(path):
        return None

    try:
        result = run_git(["-C", str(path), "remote", "get-url", "origin"])
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise RepoResolutionError(f"Could not read origin remote: {stderr or e}", str(path)) from e
    except (OSError, subprocess.SubprocessError) as e:
        raise RepoResolutionError(f"git failed: {e}", str(path)) from e

    parsed = parse_github_url(result.stdout)
    if parsed is None:
        logger.info("Origin of %s is not a GitHub remote: %s", path, result.stdout.strip())
        return None

    owner, name = parsed
    return RepoRef(path=str(path.resolve()), owner=owner, name=name)


def list_directories(path: Path | str) -> list[str]:
    """Names of the non-hidden subdirectories of path, sorted. [] if unreadable."""
    try:
        entries = sorted(os.scandir(path), key=lambda e: e.name)
    except OSError:
        return []
    dirs = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_dir():
                dirs.append(entry.name)
        except OSError:
            continue
    return dirs
