"""Tests for the grid controller: cursor movement, focus and stale results."""

import pytest

from ghflow.dashboard.card import RUN_LIMIT, RunDetail
from ghflow.dashboard.events import FetchJobs, FetchRuns, JobsFetched, RunsFetched
from ghflow.dashboard.grid import Grid, GridState
from ghflow.dashboard.view import VisualState
from tests.helpers import make_repo, make_run


def make_grid(count):
    return Grid([make_repo("octo", f"repo{i}") for i in range(count)])


def selected_indices(grid):
    return [i for i, card in enumerate(grid.cards) if card.visual != VisualState.NORMAL]


class TestLayout:
    def test_rows(self):
        assert make_grid(0).rows == 0
        assert make_grid(3).rows == 1
        assert make_grid(4).rows == 2

    def test_card_size(self):
        grid = make_grid(4)
        grid.set_size(90, 40)
        assert grid.card_size() == (30, 20)
        assert all(card.width == 30 and card.height == 20 for card in grid.cards)

    def test_first_card_selected(self):
        grid = make_grid(3)
        assert grid.cursor == 0
        assert grid.cards[0].visual == VisualState.SELECTED
        assert selected_indices(grid) == [0]

    def test_empty_grid(self):
        grid = make_grid(0)
        assert grid.cursor is None
        assert grid.selected_card is None
        assert grid.handle_key("l") == []
        assert grid.handle_key("enter") == []
        assert grid.refresh_all() == []


class TestCursorMovement:
    @pytest.mark.parametrize("key,expected", [
        ("l", 1), ("right", 1), ("j", 3), ("down", 3), ("h", 0), ("k", 0),
    ])
    def test_keys_from_origin(self, key, expected):
        grid = make_grid(6)
        grid.handle_key(key)
        assert grid.cursor == expected

    def test_right_edge_is_idempotent(self):
        grid = make_grid(6)
        for _ in range(5):
            grid.handle_key("l")
        assert grid.cursor == 2

    def test_bottom_edge_is_idempotent(self):
        grid = make_grid(6)
        for _ in range(5):
            grid.handle_key("j")
        assert grid.cursor == 3

    def test_short_last_row_clamps_to_last_card(self):
        grid = make_grid(5)
        grid.move_cursor(2, 0)
        grid.move_cursor(0, 1)
        # Row 1 has cards 3 and 4 only
        assert grid.cursor == 4

    def test_only_one_card_selected(self):
        grid = make_grid(6)
        for key in ["l", "j", "l", "k", "h"]:
            grid.handle_key(key)
            assert selected_indices(grid) == [grid.cursor]


class TestFocus:
    def test_enter_focuses_selected_card(self):
        grid = make_grid(3)
        grid.handle_key("l")
        grid.handle_key("enter")
        assert grid.state == GridState.CARD_FOCUSED
        assert grid.cards[1].visual == VisualState.FOCUSED

    def test_keys_go_to_focused_card(self):
        grid = make_grid(3)
        grid.set_size(90, 40)
        grid.cards[0].apply_runs([make_run(run_id=1), make_run(run_id=2)])
        grid.handle_key("enter")
        grid.handle_key("j")
        assert grid.cursor == 0
        assert grid.cards[0].run_cursor == 1

    def test_escape_unfocuses(self):
        grid = make_grid(3)
        grid.handle_key("enter")
        grid.handle_key("escape")
        assert grid.state == GridState.NAVIGATING
        assert grid.cards[0].visual == VisualState.SELECTED

    def test_escape_in_run_detail_stays_focused(self):
        grid = make_grid(3)
        grid.cards[0].apply_runs([make_run(run_id=7)])
        grid.handle_key("enter")
        requests = grid.handle_key("enter")
        assert requests == [FetchJobs(0, "octo", "repo0", 7)]

        grid.handle_key("escape")
        assert grid.state == GridState.CARD_FOCUSED
        assert grid.cards[0].visual == VisualState.FOCUSED


class TestResults:
    def test_refresh_all(self):
        grid = make_grid(2)
        assert grid.refresh_all() == [
            FetchRuns(0, "octo", "repo0", RUN_LIMIT),
            FetchRuns(1, "octo", "repo1", RUN_LIMIT),
        ]

    def test_apply_runs(self):
        grid = make_grid(2)
        assert grid.apply_runs(RunsFetched(1, "octo", "repo1", [make_run()])) is True
        assert len(grid.cards[1].runs) == 1

    def test_out_of_range_result_dropped(self):
        grid = make_grid(2)
        assert grid.apply_runs(RunsFetched(5, "octo", "repo5", [make_run()])) is False

    def test_result_for_replaced_repo_dropped(self):
        grid = make_grid(2)
        assert grid.apply_runs(RunsFetched(1, "octo", "gone", [make_run()])) is False
        assert grid.cards[1].runs == []

    def test_apply_jobs_routes_to_card(self):
        grid = make_grid(1)
        grid.cards[0].apply_runs([make_run(run_id=3)])
        grid.handle_key("enter")
        grid.handle_key("enter")
        assert grid.apply_jobs(JobsFetched(0, "octo", "repo0", 3, [])) is True
        assert isinstance(grid.cards[0].state, RunDetail)
        assert grid.cards[0].state.loading is False


class TestRebuild:
    def test_runs_carried_over_for_surviving_repos(self):
        old = make_grid(3)
        old.set_size(90, 40)
        old.apply_runs(RunsFetched(2, "octo", "repo2", [make_run(run_id=9)]))

        new = Grid([make_repo("octo", "repo2"), make_repo("octo", "fresh")], previous=old)
        assert [r.id for r in new.cards[0].runs] == [9]
        assert new.cards[1].runs == []
        assert new.cards[0].index == 0
        assert new.card_size() == (30, 20)
        assert new.cursor == 0
