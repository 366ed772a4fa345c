"""Configuration and profile storage for ghflow.

The tracked repositories live in ``config.yaml`` under the ghflow config
directory. Named snapshots of that list ("profiles") live in
``profiles/<name>.yaml`` next to it.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "ghflow"
CONFIG_FILENAME = "config.yaml"
PROFILES_DIRNAME = "profiles"
PROFILE_SUFFIX = ".yaml"


@dataclass(frozen=True)
class RepoRef:
    """A tracked repository. owner/name is the identity key."""
    path: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def key(self) -> tuple[str, str]:
        return (self.owner, self.name)

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "owner": self.owner, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RepoRef":
        return cls(
            path=str(data.get("path") or ""),
            owner=str(data.get("owner") or ""),
            name=str(data.get("name") or ""),
        )


@dataclass
class Config:
    """The tracked repository list plus the active profile name."""
    repos: list[RepoRef] = field(default_factory=list)
    profile_name: str | None = None

    def add_repo(self, repo: RepoRef) -> bool:
        """Append repo unless one with the same owner/name is present.

        Returns:
            True if the repo was added, False if it was a duplicate.
        """
        if any(r.key == repo.key for r in self.repos):
            return False
        self.repos.append(repo)
        return True

    def remove_repo(self, owner: str, name: str) -> bool:
        for i, r in enumerate(self.repos):
            if r.owner == owner and r.name == name:
                del self.repos[i]
                return True
        return False

    def clear(self) -> None:
        self.repos = []
        self.profile_name = None

    def snapshot(self) -> tuple[RepoRef, ...]:
        """Read-only view of the repo list for components that must not mutate it."""
        return tuple(self.repos)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"repos": [r.to_dict() for r in self.repos]}
        if self.profile_name:
            data["profile_name"] = self.profile_name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Config":
        data = data or {}
        repos = [RepoRef.from_dict(r) for r in data.get("repos") or [] if isinstance(r, dict)]
        return cls(repos=repos, profile_name=data.get("profile_name") or None)


def get_config_dir() -> Path:
    """Get the ghflow configuration directory.

    Can be overridden via GHFLOW_CONFIG_DIR environment variable (used by tests).
    Otherwise follows XDG: $XDG_CONFIG_HOME/ghflow, falling back to ~/.config/ghflow.
    """
    env_override = os.environ.get("GHFLOW_CONFIG_DIR")
    if env_override:
        return Path(env_override)
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_log_path() -> Path:
    return get_config_dir() / "logs" / "dashboard.log"


def validate_profile_name(name: str) -> str:
    """Return the stripped profile name, or raise ConfigError if unusable as a filename."""
    name = (name or "").strip()
    if not name:
        raise ConfigError("Profile name is empty")
    if name.startswith(".") or "/" in name or os.sep in name:
        raise ConfigError(f"Invalid profile name: {name!r}")
    return name


class ConfigStore:
    """Reads and writes the configuration file and profiles.

    Args:
        directory: Config directory. Defaults to get_config_dir().
    """

    def __init__(self, directory: Path | str | None = None):
        self.directory = Path(directory) if directory else get_config_dir()

    @property
    def config_path(self) -> Path:
        return self.directory / CONFIG_FILENAME

    @property
    def profiles_dir(self) -> Path:
        return self.directory / PROFILES_DIRNAME

    def profile_path(self, name: str) -> Path:
        return self.profiles_dir / f"{validate_profile_name(name)}{PROFILE_SUFFIX}"

    def load_config(self) -> Config:
        """Load config.yaml. A missing file yields an empty Config."""
        path = self.config_path
        if not path.exists():
            return Config()
        return self._read(path)

    def save_config(self, config: Config) -> None:
        self._write(self.config_path, config)

    def list_profiles(self) -> list[str]:
        """Return saved profile names, sorted. A missing profiles dir yields []."""
        directory = self.profiles_dir
        if not directory.is_dir():
            return []
        try:
            return sorted(
                p.name[: -len(PROFILE_SUFFIX)]
                for p in directory.iterdir()
                if p.is_file() and p.name.endswith(PROFILE_SUFFIX)
            )
        except OSError as e:
            raise ConfigError(f"Could not list profiles: {e}", str(directory)) from e

    def load_profile(self, name: str) -> Config:
        path = self.profile_path(name)
        if not path.exists():
            raise ConfigError(f"Profile not found: {name}", str(path))
        return self._read(path)

    def save_profile(self, name: str, config: Config) -> None:
        self._write(self.profile_path(name), config)

    def _read(self, path: Path) -> Config:
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read {path}: {e}", str(path)) from e
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"Malformed configuration in {path}", str(path))
        return Config.from_dict(data)

    def _write(self, path: Path, config: Config) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not write {path}: {e}", str(path)) from e
        logger.debug("Wrote %s (%d repos)", path, len(config.repos))
