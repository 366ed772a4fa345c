"""Tests for DashboardModel: mode switching, key routing and commands."""

import copy

import pytest

from ghflow.config import Config
from ghflow.dashboard.command import Command, CommandType
from ghflow.dashboard.dashboard import (
    EMPTY_GRID_MESSAGE,
    HELP_COMMAND,
    HELP_FOCUSED,
    HELP_NAVIGATING,
    HELP_RUN_DETAIL,
    DashboardModel,
    InputMode,
)
from ghflow.dashboard.events import FetchRuns, JobsFetched, Quit, RunsFetched
from ghflow.dashboard.grid import GridState
from ghflow.exceptions import ConfigError, RepoResolutionError
from tests.helpers import FakeResolver, make_job, make_repo, make_run


class FakeStore:
    """In-memory ConfigStore. Set fail=True to make every write raise."""

    def __init__(self, profiles=None):
        self.saved = []
        self.profiles = dict(profiles or {})
        self.fail = False

    def save_config(self, config):
        if self.fail:
            raise ConfigError("disk full")
        self.saved.append(Config(list(config.repos), config.profile_name))

    def list_profiles(self):
        return sorted(self.profiles)

    def load_profile(self, name):
        if name not in self.profiles:
            raise ConfigError(f"Profile not found: {name}")
        return self.profiles[name]

    def save_profile(self, name, config):
        if self.fail:
            raise ConfigError("disk full")
        self.profiles[name] = Config(list(config.repos), config.profile_name)


@pytest.fixture
def store():
    return FakeStore()


def make_model(repos=(), store=None, resolver=None, list_dirs=None):
    model = DashboardModel(
        Config(repos=list(repos)),
        store or FakeStore(),
        resolve_repo=resolver or FakeResolver(),
        is_repo=lambda path: False,
        list_dirs=list_dirs or (lambda path: []),
        cwd="/nonexistent",
    )
    model.set_size(120, 40)
    return model


def type_keys(model, text):
    requests = []
    for ch in text:
        requests.extend(model.handle_key(ch))
    return requests


class TestStartup:
    def test_start_fetches_every_card(self):
        model = make_model([make_repo("octo", "a"), make_repo("octo", "b")])
        requests = model.start()
        assert [(r.card_index, r.name) for r in requests] == [(0, "a"), (1, "b")]

    def test_title_includes_profile(self):
        model = make_model()
        assert model.title == "ghflow"
        model.config.profile_name = "work"
        assert model.title == "ghflow - work"

    def test_empty_message(self):
        assert make_model().view().empty_message == EMPTY_GRID_MESSAGE
        assert make_model([make_repo()]).view().empty_message == ""


class TestKeyRouting:
    def test_ctrl_c_always_quits(self):
        model = make_model()
        assert model.handle_key("ctrl+c") == [Quit()]
        model.handle_key("/")
        assert model.handle_key("ctrl+c") == [Quit()]

    def test_q_quits_when_navigating(self):
        assert make_model().handle_key("q") == [Quit()]

    def test_r_refreshes_when_navigating(self):
        model = make_model([make_repo()])
        assert model.handle_key("r") == [FetchRuns(0, "octo", "app", 5)]

    def test_slash_enters_command_mode(self):
        model = make_model()
        model.error = "old error"
        assert model.handle_key("/") == []
        assert model.mode == InputMode.COMMAND
        assert model.command.input == "/"
        assert model.error is None

    def test_q_is_typed_in_command_mode(self):
        model = make_model()
        model.handle_key("/")
        assert model.handle_key("q") == []
        assert model.command.input == "/q"

    def test_escape_leaves_command_mode(self):
        model = make_model()
        type_keys(model, "/add")
        model.handle_key("escape")
        assert model.mode == InputMode.GRID
        assert model.command.active is False

    def test_q_does_not_quit_while_card_focused(self):
        model = make_model([make_repo()])
        model.handle_key("enter")
        assert model.grid.state == GridState.CARD_FOCUSED
        assert model.handle_key("q") == []

    def test_slash_ignored_while_card_focused(self):
        model = make_model([make_repo()])
        model.handle_key("enter")
        model.handle_key("/")
        assert model.mode == InputMode.GRID

    def test_grid_navigation(self):
        model = make_model([make_repo("octo", "a"), make_repo("octo", "b")])
        model.handle_key("l")
        assert model.grid.cursor == 1

    def test_typed_command_runs(self):
        model = make_model([make_repo()])
        requests = type_keys(model, "/refresh")
        requests += model.handle_key("enter")
        assert requests == [FetchRuns(0, "octo", "app", 5)]
        assert model.mode == InputMode.GRID


class TestHelpLine:
    def test_per_mode(self):
        model = make_model([make_repo()])
        model.grid.cards[0].apply_runs([make_run()])
        assert model.help_line() == HELP_NAVIGATING
        model.handle_key("enter")
        assert model.help_line() == HELP_FOCUSED
        model.handle_key("enter")
        assert model.help_line() == HELP_RUN_DETAIL
        model.handle_key("escape")
        model.handle_key("escape")
        model.handle_key("/")
        assert model.help_line() == HELP_COMMAND


class TestAddRemove:
    def test_add(self, store):
        repo = make_repo("octo", "app", path="/src/app")
        model = make_model(store=store, resolver=FakeResolver({"/src/app": repo}))

        requests = model.execute(Command(CommandType.ADD, "/src/app"))

        assert model.config.repos == [repo]
        assert requests == [FetchRuns(0, "octo", "app", 5)]
        assert store.saved[-1].repos == [repo]
        assert model.grid.cards[0].repo == repo
        assert model.command.browse_root() == "/src"
        assert model.error is None

    def test_add_duplicate_is_noop(self, store):
        repo = make_repo("octo", "app", path="/src/app")
        model = make_model([repo], store=store, resolver=FakeResolver({"/other/app": repo}))
        model.execute(Command(CommandType.ADD, "/other/app"))
        assert len(model.config.repos) == 1
        assert model.error is None

    def test_add_without_path(self):
        model = make_model()
        model.execute(Command(CommandType.ADD, ""))
        assert model.error.startswith("Usage")

    def test_add_non_github_directory(self, store):
        model = make_model(store=store)
        assert model.execute(Command(CommandType.ADD, "/tmp")) == []
        assert "Not a GitHub repository" in model.error
        assert store.saved == []

    def test_relative_path_resolved_from_browse_root(self):
        repo = make_repo("octo", "proj", path="/work/base/proj")
        resolver = FakeResolver({"/work/base/proj": repo})
        model = make_model(resolver=resolver)
        model.command.remember_path("/work/base/other")

        requests = model.execute(Command(CommandType.ADD, "proj"))

        assert resolver.calls == ["/work/base/proj"]
        assert model.config.repos == [repo]
        assert requests == [FetchRuns(0, "octo", "proj", 5)]

    def test_typed_relative_path_matches_suggestion(self):
        """Enter resolves relative input in the directory that completion lists."""
        resolver = FakeResolver()
        model = make_model(resolver=resolver, list_dirs=lambda path: ["proj"] if path == "/work/base" else [])
        model.command.remember_path("/work/base/other")

        model.handle_key("/")
        type_keys(model, "add pro")
        suggested = [s.value for s in model.command.suggestions]
        model.handle_key("enter")

        assert suggested == ["/add /work/base/proj"]
        assert resolver.calls == ["/work/base/pro"]

    def test_absolute_path_ignores_browse_root(self):
        resolver = FakeResolver()
        model = make_model(resolver=resolver)
        model.command.remember_path("/work/base/other")
        model.execute(Command(CommandType.ADD, "/elsewhere/app"))
        assert resolver.calls == ["/elsewhere/app"]

    def test_add_resolution_failure(self):
        resolver = FakeResolver(error=RepoResolutionError("Could not read origin remote"))
        model = make_model(resolver=resolver)
        model.execute(Command(CommandType.ADD, "/src/app"))
        assert model.error == "Could not read origin remote"
        assert model.config.repos == []

    def test_remove(self, store):
        model = make_model([make_repo("octo", "a"), make_repo("octo", "b")], store=store)
        assert model.execute(Command(CommandType.REMOVE, "octo/a")) == []
        assert [r.name for r in model.config.repos] == ["b"]
        assert [c.repo.name for c in model.grid.cards] == ["b"]
        assert model.command._repos == model.config.snapshot()

    def test_remove_untracked(self):
        model = make_model([make_repo("octo", "a")])
        model.execute(Command(CommandType.REMOVE, "octo/zzz"))
        assert "Not tracked" in model.error

    @pytest.mark.parametrize("arg", ["", "octo", "/a", "octo/"])
    def test_remove_usage(self, arg):
        model = make_model([make_repo("octo", "a")])
        model.execute(Command(CommandType.REMOVE, arg))
        assert model.error.startswith("Usage")
        assert len(model.config.repos) == 1

    def test_stale_result_after_remove_dropped(self):
        model = make_model([make_repo("octo", "a"), make_repo("octo", "b")])
        model.start()
        model.execute(Command(CommandType.REMOVE, "octo/a"))
        assert model.handle_result(RunsFetched(0, "octo", "b", [make_run(run_id=4), make_run(run_id=5)])) is True
        model.handle_key("enter")
        model.handle_key("j")
        survivor = model.grid.cards[0]
        state_before = copy.deepcopy(survivor.state)

        assert model.handle_result(RunsFetched(1, "octo", "b", [make_run(run_id=99)])) is False
        assert model.handle_result(RunsFetched(0, "octo", "a", [make_run(run_id=98)])) is False
        assert model.handle_result(JobsFetched(0, "octo", "a", 4, [make_job()])) is False

        assert [r.id for r in survivor.runs] == [4, 5]
        assert survivor.error is None
        assert survivor.state == state_before
        assert survivor.run_cursor == 1
        assert len(model.grid.cards) == 1

    def test_surviving_cards_keep_runs(self):
        model = make_model([make_repo("octo", "a"), make_repo("octo", "b")])
        model.handle_result(RunsFetched(1, "octo", "b", [make_run(run_id=4)]))
        model.execute(Command(CommandType.REMOVE, "octo/a"))
        assert [r.id for r in model.grid.cards[0].runs] == [4]


class TestProfiles:
    def test_save(self, store):
        model = make_model([make_repo()], store=store)
        model.execute(Command(CommandType.SAVE, "work"))
        assert model.profile_name == "work"
        assert store.profiles["work"].repos == [make_repo()]
        assert store.profiles["work"].profile_name == "work"
        assert store.saved[-1].profile_name == "work"

    def test_saved_profile_file_records_new_name(self, config_store):
        model = make_model([make_repo()], store=config_store)
        model.config.profile_name = "old"
        model.execute(Command(CommandType.SAVE, "work"))

        assert config_store.load_profile("work").profile_name == "work"
        assert config_store.load_config().profile_name == "work"

    def test_save_failure(self, store):
        store.fail = True
        model = make_model([make_repo()], store=store)
        model.execute(Command(CommandType.SAVE, "work"))
        assert "Failed to save profile" in model.error
        assert model.profile_name is None

    def test_load(self):
        store = FakeStore(profiles={"work": Config(repos=[make_repo("octo", "x"), make_repo("octo", "y")])})
        model = make_model([make_repo("octo", "a")], store=store)

        requests = model.execute(Command(CommandType.LOAD, "work"))

        assert [r.name for r in model.config.repos] == ["x", "y"]
        assert model.profile_name == "work"
        assert [r.name for r in requests] == ["x", "y"]
        assert store.saved[-1].profile_name == "work"

    def test_load_missing(self):
        model = make_model([make_repo("octo", "a")])
        model.execute(Command(CommandType.LOAD, "ghost"))
        assert "Failed to load profile" in model.error
        assert [r.name for r in model.config.repos] == ["a"]

    def test_new(self, store):
        model = make_model([make_repo()], store=store)
        model.config.profile_name = "work"
        model.execute(Command(CommandType.NEW))
        assert model.config.repos == []
        assert model.profile_name is None
        assert model.grid.cursor is None
        assert store.saved[-1].repos == []

    def test_usage_errors(self):
        model = make_model()
        model.execute(Command(CommandType.SAVE, ""))
        assert model.error == "Usage: /save <name>"
        model.execute(Command(CommandType.LOAD, ""))
        assert model.error == "Usage: /load <profile>"


class TestMisc:
    def test_quit_command(self):
        assert make_model().execute(Command(CommandType.QUIT)) == [Quit()]

    def test_unknown_command_is_noop(self):
        model = make_model([make_repo()])
        assert model.execute(Command(CommandType.UNKNOWN)) == []
        assert model.error is None

    def test_persist_failure_is_reported_but_change_kept(self, store):
        store.fail = True
        repo = make_repo("octo", "app", path="/src/app")
        model = make_model(store=store, resolver=FakeResolver({"/src/app": repo}))
        model.execute(Command(CommandType.ADD, "/src/app"))
        assert model.config.repos == [repo]
        assert model.error.startswith("Failed to save config")

    def test_tick_refreshes(self):
        model = make_model([make_repo()])
        assert model.handle_tick() == [FetchRuns(0, "octo", "app", 5)]

    def test_grid_height_has_floor(self):
        model = make_model([make_repo()])
        model.set_size(90, 3)
        assert model.grid.height == 6
