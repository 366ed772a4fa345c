"""Dashboard orchestrator: mode switching, event routing and command execution.

The model is driven by discrete events (keys, timer ticks, fetch results)
and answers with requests for the event loop to carry out. It is the only
component allowed to mutate and persist the configuration; the grid and the
command overlay get read-only snapshots of the repo list.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from enum import Enum
from typing import Callable, Protocol

from ..config import Config, RepoRef
from ..exceptions import ConfigError, RepoResolutionError
from ..repo_utils import is_git_repo
from .card import RunDetail
from .command import COMMAND_SIGIL, Command, CommandOverlay, CommandType
from .events import JobsFetched, Quit, Request, Result, RunsFetched
from .grid import Grid, GridState
from .view import DashboardView

logger = logging.getLogger(__name__)

APP_TITLE = "ghflow"
TITLE_HEIGHT = 2
COMMAND_HEIGHT = 4
MIN_GRID_HEIGHT = 6

EMPTY_GRID_MESSAGE = "No repositories added.\nType /add to add one."

HELP_NAVIGATING = "h/j/k/l: navigate | enter: focus | r: refresh | /: command | q: quit"
HELP_FOCUSED = "j/k: scroll runs | enter: view details | esc: unfocus"
HELP_RUN_DETAIL = "j/k: scroll jobs | esc: back to runs"
HELP_COMMAND = "tab: complete | up/down: browse | enter: run | esc: cancel"


class InputMode(Enum):
    GRID = "grid"
    COMMAND = "command"


class ConfigPersistence(Protocol):
    def save_config(self, config: Config) -> None: ...

    def list_profiles(self) -> list[str]: ...

    def load_profile(self, name: str) -> Config: ...

    def save_profile(self, name: str, config: Config) -> None: ...


class DashboardModel:
    """Top-level state: the grid, the command overlay and the input mode.

    Args:
        config: The live configuration. Mutated only by command handlers.
        store: Persistence for the configuration and profiles
        resolve_repo: Resolves a directory into a RepoRef (None if not a repo)
        is_repo: Cheap check used to tag directory suggestions
        list_dirs: Lists child directories for /add completion
        cwd: Initial browse root for /add completion
    """

    def __init__(
        self,
        config: Config,
        store: ConfigPersistence,
        resolve_repo: Callable[[str], RepoRef | None],
        is_repo: Callable[[str], bool] | None = None,
        list_dirs: Callable[[str], list[str]] | None = None,
        cwd: str | None = None,
    ):
        self.config = config
        self.store = store
        self._resolve_repo = resolve_repo
        self.mode = InputMode.GRID
        self.error: str | None = None
        self.width = 0
        self.height = 0
        self.grid = Grid(config.snapshot())
        self.command = CommandOverlay(
            repos=config.snapshot(),
            list_profiles=store.list_profiles,
            is_repo=is_repo or is_git_repo,
            list_dirs=list_dirs,
            cwd=cwd,
        )

    @property
    def profile_name(self) -> str | None:
        return self.config.profile_name

    @property
    def title(self) -> str:
        if self.profile_name:
            return f"{APP_TITLE} - {self.profile_name}"
        return APP_TITLE

    def start(self) -> list[Request]:
        return self.grid.refresh_all()

    def set_size(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.grid.set_size(width, self._grid_height())

    def _grid_height(self) -> int:
        return max(MIN_GRID_HEIGHT, self.height - TITLE_HEIGHT - COMMAND_HEIGHT)

    # -- events --------------------------------------------------------------

    def handle_key(self, key: str) -> list[Request]:
        if key == "ctrl+c":
            return [Quit()]

        navigating = self.mode == InputMode.GRID and self.grid.state == GridState.NAVIGATING

        if self.mode == InputMode.COMMAND:
            if key == "escape":
                self._leave_command_mode()
                return []
            result = self.command.handle_key(key)
            if result.closed:
                self.mode = InputMode.GRID
            if result.command is not None:
                return self.execute(result.command)
            return []

        if navigating:
            if key == "q":
                return [Quit()]
            if key == "r":
                return self.grid.refresh_all()
            if key == COMMAND_SIGIL:
                self.mode = InputMode.COMMAND
                self.error = None
                self.command.activate()
                return []

        return self.grid.handle_key(key)

    def handle_tick(self) -> list[Request]:
        return self.grid.refresh_all()

    def handle_result(self, event: Result) -> bool:
        """Merge a fetch result. Returns False if it was stale and dropped."""
        if isinstance(event, RunsFetched):
            return self.grid.apply_runs(event)
        if isinstance(event, JobsFetched):
            return self.grid.apply_jobs(event)
        return False

    def _leave_command_mode(self) -> None:
        self.mode = InputMode.GRID
        self.command.deactivate()

    # -- commands ------------------------------------------------------------

    def execute(self, command: Command) -> list[Request]:
        """Carry out a parsed command. Always leaves the dashboard in grid mode."""
        self._leave_command_mode()
        self.error = None
        logger.info("Executing command %s %s", command.type.value, command.arg)

        handler = {
            CommandType.ADD: self._cmd_add,
            CommandType.REMOVE: self._cmd_remove,
            CommandType.SAVE: self._cmd_save,
            CommandType.LOAD: self._cmd_load,
            CommandType.NEW: self._cmd_new,
            CommandType.REFRESH: self._cmd_refresh,
            CommandType.QUIT: self._cmd_quit,
        }.get(command.type)
        if handler is None:
            return []
        return handler(command.arg)

    def _cmd_add(self, arg: str) -> list[Request]:
        if not arg:
            self.error = "Usage: /add <path>"
            return []
        # Relative paths are taken from the directory completion browses
        path = os.path.normpath(os.path.join(self.command.browse_root(), os.path.expanduser(arg)))
        try:
            repo = self._resolve_repo(path)
        except RepoResolutionError as e:
            logger.warning("Could not resolve %s: %s", path, e)
            self.error = str(e)
            return []
        if repo is None:
            self.error = f"Not a GitHub repository: {arg}"
            return []

        if not self.config.add_repo(repo):
            logger.info("%s is already tracked", repo.full_name)
        self._persist()
        self._rebuild_grid()
        self.command.remember_path(repo.path)
        return self.grid.refresh_all()

    def _cmd_remove(self, arg: str) -> list[Request]:
        owner, sep, name = arg.strip().partition("/")
        if not sep or not owner or not name:
            self.error = "Usage: /remove <owner/name>"
            return []
        if not self.config.remove_repo(owner, name):
            self.error = f"Not tracked: {arg}"
            return []
        self._persist()
        self._rebuild_grid()
        return []

    def _cmd_save(self, arg: str) -> list[Request]:
        if not arg:
            self.error = "Usage: /save <name>"
            return []
        try:
            self.store.save_profile(arg, Config(repos=list(self.config.repos), profile_name=arg))
        except ConfigError as e:
            logger.warning("Saving profile %s failed: %s", arg, e)
            self.error = f"Failed to save profile: {e}"
            return []
        self.config.profile_name = arg
        self._persist()
        return []

    def _cmd_load(self, arg: str) -> list[Request]:
        if not arg:
            self.error = "Usage: /load <profile>"
            return []
        try:
            loaded = self.store.load_profile(arg)
        except ConfigError as e:
            logger.warning("Loading profile %s failed: %s", arg, e)
            self.error = f"Failed to load profile: {e}"
            return []
        self.config.repos = list(loaded.repos)
        self.config.profile_name = arg
        self._persist()
        self._rebuild_grid()
        return self.grid.refresh_all()

    def _cmd_new(self, arg: str) -> list[Request]:
        self.config.clear()
        self._persist()
        self._rebuild_grid()
        return []

    def _cmd_refresh(self, arg: str) -> list[Request]:
        return self.grid.refresh_all()

    def _cmd_quit(self, arg: str) -> list[Request]:
        return [Quit()]

    def _persist(self) -> None:
        """Write the configuration. Failure is reported but the in-memory change stays."""
        try:
            self.store.save_config(self.config)
        except ConfigError as e:
            logger.warning("Saving configuration failed: %s", e)
            self.error = f"Failed to save config: {e}"

    def _rebuild_grid(self) -> None:
        snapshot = self.config.snapshot()
        self.grid = Grid(snapshot, previous=self.grid)
        self.grid.set_size(self.width, self._grid_height())
        self.command.set_repos(snapshot)

    # -- view ----------------------------------------------------------------

    def help_line(self) -> str:
        if self.mode == InputMode.COMMAND:
            return HELP_COMMAND
        if self.grid.state == GridState.NAVIGATING:
            return HELP_NAVIGATING
        card = self.grid.selected_card
        if card is not None and isinstance(card.state, RunDetail):
            return HELP_RUN_DETAIL
        return HELP_FOCUSED

    def view(self, now: datetime | None = None) -> DashboardView:
        return DashboardView(
            title=self.title,
            cards=self.grid.view(now),
            columns=self.grid.cols,
            command=self.command.view(),
            help_line=self.help_line(),
            error=self.error,
            empty_message="" if self.grid.cards else EMPTY_GRID_MESSAGE,
        )


