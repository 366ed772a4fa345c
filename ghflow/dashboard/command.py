"""Command-line overlay: modal input buffer, completion and command parsing.

Commands (all prefixed with the sigil "/"):

    /add <path>        track the GitHub repository checked out at path
    /remove <repo>     stop tracking owner/name
    /save <name>       save the tracked repos as a profile
    /load <profile>    replace the tracked repos with a saved profile
    /new               clear the tracked repos
    /refresh           refetch every card
    /quit, /q          exit
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from ..config import RepoRef
from ..exceptions import ConfigError
from ..repo_utils import is_git_repo, list_directories
from .view import CommandView, SuggestionView

logger = logging.getLogger(__name__)

COMMAND_SIGIL = "/"
MAX_SUGGESTIONS = 10
VISIBLE_SUGGESTIONS = 5
REPO_TAG = " [repo]"


class CommandType(Enum):
    UNKNOWN = "unknown"
    ADD = "add"
    REMOVE = "remove"
    SAVE = "save"
    LOAD = "load"
    NEW = "new"
    REFRESH = "refresh"
    QUIT = "quit"


@dataclass(frozen=True)
class Command:
    type: CommandType
    arg: str = ""


# (name, type, argument placeholder)
COMMANDS: list[tuple[str, CommandType, str]] = [
    ("add", CommandType.ADD, "<path>"),
    ("remove", CommandType.REMOVE, "<repo>"),
    ("save", CommandType.SAVE, "<name>"),
    ("load", CommandType.LOAD, "<profile>"),
    ("new", CommandType.NEW, ""),
    ("refresh", CommandType.REFRESH, ""),
    ("quit", CommandType.QUIT, ""),
    ("q", CommandType.QUIT, ""),
]
_COMMANDS_BY_NAME = {name: (ctype, placeholder) for name, ctype, placeholder in COMMANDS}

COMMAND_HINT = "  ".join(COMMAND_SIGIL + name for name, _, _ in COMMANDS if name != "q")


def _split(text: str) -> tuple[str, str, bool]:
    """Split buffer text into (command, argument, has_separator)."""
    body = text[len(COMMAND_SIGIL):] if text.startswith(COMMAND_SIGIL) else text
    parts = body.split(None, 1)
    if not parts:
        return "", "", False
    has_separator = len(parts) > 1 or body.rstrip() != body
    return parts[0], parts[1] if len(parts) > 1 else "", has_separator


def parse_command(text: str) -> Command:
    """Parse '/name argument' into a Command. Unrecognised names map to UNKNOWN."""
    name, arg, _ = _split(text.strip())
    if name not in _COMMANDS_BY_NAME:
        return Command(CommandType.UNKNOWN)
    ctype, placeholder = _COMMANDS_BY_NAME[name]
    if not placeholder:
        return Command(ctype)
    arg = arg.strip()
    if arg.endswith(REPO_TAG.strip()):
        arg = arg[: -len(REPO_TAG.strip())].rstrip()
    return Command(ctype, arg)


class SuggestionKind(Enum):
    COMMAND = "command"
    PATH = "path"
    REPO = "repo"
    PROFILE = "profile"


@dataclass(frozen=True)
class Suggestion:
    """A completion candidate.

    ``value`` is the full buffer text the suggestion stands for; ``hint`` is an
    argument placeholder shown after it; ``is_repo`` marks directories that are
    git repositories.
    """
    value: str
    kind: SuggestionKind
    hint: str = ""
    is_repo: bool = False

    @property
    def display(self) -> str:
        if self.is_repo:
            return self.value + REPO_TAG
        if self.hint:
            return f"{self.value} {self.hint}"
        return self.value

    def completion(self) -> str:
        """Buffer text after completing to this suggestion, decoration stripped."""
        if self.kind is SuggestionKind.COMMAND and self.hint:
            return self.value + " "
        if self.kind is SuggestionKind.PATH and not self.is_repo:
            return self.value.rstrip(os.sep) + os.sep
        return self.value


@dataclass(frozen=True)
class OverlayResult:
    command: Command | None = None
    closed: bool = False


class CommandOverlay:
    """Modal command line with context-sensitive completion.

    Args:
        repos: Currently tracked repos, for /remove completion
        list_profiles: Returns saved profile names, for /load completion
        is_repo: Predicate tagging directory suggestions as repositories
        list_dirs: Lists child directory names of a path
        cwd: Browse root before any /add has succeeded (defaults to os.getcwd())
    """

    def __init__(
        self,
        repos: Iterable[RepoRef] = (),
        list_profiles: Callable[[], list[str]] | None = None,
        is_repo: Callable[[str], bool] | None = None,
        list_dirs: Callable[[str], list[str]] | None = None,
        cwd: str | None = None,
    ):
        self._repos = tuple(repos)
        self._list_profiles = list_profiles or (lambda: [])
        self._is_repo = is_repo or is_git_repo
        self._list_dirs = list_dirs or list_directories
        self._cwd = cwd
        self.input = ""
        self.active = False
        self.suggestions: list[Suggestion] = []
        self.suggestion_index = 0
        self.browsing = False
        self.last_dir: str | None = None

    def set_repos(self, repos: Iterable[RepoRef]) -> None:
        self._repos = tuple(repos)

    def remember_path(self, path: str) -> None:
        """Use the parent of path as the browse root for the next /add."""
        self.last_dir = os.path.dirname(os.path.normpath(path))

    def browse_root(self) -> str:
        return self.last_dir or self._cwd or os.getcwd()

    def activate(self) -> None:
        self.active = True
        self.input = COMMAND_SIGIL
        self._update_suggestions()

    def deactivate(self) -> None:
        self.active = False
        self.input = ""
        self.suggestions = []
        self.suggestion_index = 0
        self.browsing = False

    # -- input ---------------------------------------------------------------

    def handle_key(self, key: str) -> OverlayResult:
        if not self.active:
            return OverlayResult()

        if key == "escape":
            self.deactivate()
            return OverlayResult(closed=True)

        if key == "enter":
            if self.browsing and self.suggestions:
                self._complete(self.suggestions[self.suggestion_index])
                return OverlayResult()
            command = parse_command(self.input)
            self.deactivate()
            return OverlayResult(command=command, closed=True)

        if key == "tab":
            if self.suggestions:
                self._complete(self.suggestions[self.suggestion_index])
        elif key in ("up", "shift+tab", "ctrl+p"):
            self._move_suggestion(-1)
        elif key in ("down", "ctrl+n"):
            self._move_suggestion(1)
        elif key == "backspace":
            # The sigil stays; escape is the way out
            if len(self.input) > len(COMMAND_SIGIL):
                self.input = self.input[:-1]
                self._update_suggestions()
        elif len(key) == 1 and key.isprintable():
            self.input += key
            self._update_suggestions()
        return OverlayResult()

    def _move_suggestion(self, delta: int) -> None:
        if not self.suggestions:
            return
        if not self.browsing:
            # First move highlights the nearest end of the list
            self.browsing = True
            self.suggestion_index = 0 if delta > 0 else len(self.suggestions) - 1
            return
        self.suggestion_index = (self.suggestion_index + delta) % len(self.suggestions)

    def _complete(self, suggestion: Suggestion) -> None:
        self.input = suggestion.completion()
        self._update_suggestions()

    # -- suggestions ---------------------------------------------------------

    def _update_suggestions(self) -> None:
        self.suggestion_index = 0
        self.browsing = False

        name, arg, has_separator = _split(self.input)
        if not has_separator:
            self.suggestions = [
                Suggestion(COMMAND_SIGIL + cmd_name, SuggestionKind.COMMAND, hint=placeholder)
                for cmd_name, _, placeholder in COMMANDS
                if cmd_name.startswith(name)
            ]
        elif name == "add":
            self.suggestions = self._complete_path(arg)
        elif name == "remove":
            self.suggestions = self._complete_repo(arg)
        elif name == "load":
            self.suggestions = self._complete_profile(arg)
        else:
            self.suggestions = []

    def _complete_path(self, partial: str) -> list[Suggestion]:
        root = self.browse_root()
        partial = os.path.expanduser(partial)
        if not partial:
            directory, prefix = root, ""
        elif partial.endswith(os.sep):
            directory, prefix = partial, ""
        else:
            head, prefix = os.path.split(partial)
            directory = head or root
        directory = os.path.normpath(os.path.join(root, directory))

        suggestions = []
        for entry in self._list_dirs(directory):
            if entry.startswith(".") or not entry.startswith(prefix):
                continue
            full_path = os.path.join(directory, entry)
            suggestions.append(Suggestion(
                f"{COMMAND_SIGIL}add {full_path}",
                SuggestionKind.PATH,
                is_repo=self._is_repo(full_path),
            ))
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
        return suggestions

    def _complete_repo(self, partial: str) -> list[Suggestion]:
        needle = partial.strip().lower()
        suggestions = []
        for repo in self._repos:
            if needle in repo.full_name.lower():
                suggestions.append(Suggestion(f"{COMMAND_SIGIL}remove {repo.full_name}", SuggestionKind.REPO))
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
        return suggestions

    def _complete_profile(self, partial: str) -> list[Suggestion]:
        try:
            profiles = self._list_profiles()
        except ConfigError as e:
            logger.warning("Could not list profiles: %s", e)
            return []
        needle = partial.strip().lower()
        suggestions = []
        for profile in profiles:
            if profile.lower().startswith(needle):
                suggestions.append(Suggestion(f"{COMMAND_SIGIL}load {profile}", SuggestionKind.PROFILE))
            if len(suggestions) >= MAX_SUGGESTIONS:
                break
        return suggestions

    # -- view ----------------------------------------------------------------

    def view(self) -> CommandView:
        if not self.active:
            return CommandView(focused=False, input="", suggestions=[])

        start = 0
        if self.browsing and self.suggestion_index >= VISIBLE_SUGGESTIONS:
            start = self.suggestion_index - VISIBLE_SUGGESTIONS + 1
        shown = self.suggestions[start:start + VISIBLE_SUGGESTIONS]
        highlighted = self.suggestion_index - start if self.browsing else None
        return CommandView(
            focused=True,
            input=self.input,
            suggestions=[SuggestionView(s.value, s.hint, s.is_repo) for s in shown],
            highlighted=highlighted,
            overflow=len(self.suggestions) > start + VISIBLE_SUGGESTIONS,
            hint_line="" if self.suggestions else COMMAND_HINT,
        )
