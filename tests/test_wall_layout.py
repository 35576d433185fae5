"""Tests for grid building and reload reconciliation."""

import json
import math

import pytest

from wall_config import Config, Source
from wall_layout import (
    LayoutState,
    build_grid,
    effective_weight,
    needs_rebuild,
    reconcile,
    row_shares,
    stretch_units,
)


def make_config(n=3, cols=3, **kwargs):
    sources = [Source(name=f"Cam {i + 1}", url=f"https://example.com/{i}", weight=1.0) for i in range(n)]
    return Config(app_title="Wall", grid_columns=cols, sources=sources, **kwargs)


class TestBuildGrid:
    """Row/column partitioning."""

    @pytest.mark.parametrize("cols", range(1, 6))
    @pytest.mark.parametrize("n", range(1, 11))
    def test_shape(self, n, cols):
        grid = build_grid([Source() for _ in range(n)], cols)
        assert len(grid.rows) == math.ceil(n / cols)
        assert len(grid) == n
        assert sorted(slot.index for slot in grid.slots) == list(range(n))
        assert all(len(row) <= cols for row in grid.rows)

    def test_partial_last_row(self):
        grid = build_grid([Source() for _ in range(7)], 3)
        assert [len(row) for row in grid.rows] == [3, 3, 1]
        assert [s.index for s in grid.rows[2]] == [6]
        assert not grid.single_row

    def test_single_row_flag(self):
        assert build_grid([Source(), Source()], 5).single_row

    def test_no_sources_gives_one_empty_row(self):
        grid = build_grid([], 3)
        assert grid.rows == [[]]
        assert len(grid) == 0

    def test_columns_clamped(self):
        assert build_grid([Source()] * 8, 7).columns == 5
        assert build_grid([Source()] * 8, 0).columns == 1
        assert len(build_grid([Source()] * 8, 0).rows) == 8

    def test_sources_truncated(self):
        assert len(build_grid([Source() for _ in range(12)], 3)) == 10


class TestReconcile:
    """Rebuild versus in-place updates and reload decisions."""

    def test_first_apply_builds_and_loads_everything(self):
        state = LayoutState()
        plan = reconcile(state, make_config(3))
        assert plan.rebuilt
        assert plan.loads == [(i, f"https://example.com/{i}") for i in range(3)]
        assert plan.title == "Wall"

    def test_second_apply_is_idempotent(self):
        state = LayoutState()
        cfg = make_config(4, 2)
        reconcile(state, cfg)
        plan = reconcile(state, cfg)
        assert not plan.rebuilt
        assert plan.loads == []

    def test_force_reloads_every_slot(self):
        state = LayoutState()
        cfg = make_config(4, 2)
        reconcile(state, cfg)
        plan = reconcile(state, cfg, force=True)
        assert not plan.rebuilt
        assert [idx for idx, _ in plan.loads] == [0, 1, 2, 3]

    def test_weight_change_keeps_slots(self):
        state = LayoutState()
        cfg = make_config(3)
        reconcile(state, cfg)
        before = [id(slot) for slot in state.slots]

        cfg.sources[1].weight = 2.5
        plan = reconcile(state, cfg)

        assert not plan.rebuilt
        assert [id(slot) for slot in state.slots] == before
        assert state.slots[1].stretch == 2.5
        assert plan.loads == []

    def test_source_count_change_rebuilds(self):
        state = LayoutState()
        cfg = make_config(3)
        reconcile(state, cfg)
        before = state.slots[0]
        cfg.sources.append(Source(url="https://example.com/new"))
        plan = reconcile(state, cfg)
        assert plan.rebuilt
        assert state.slots[0] is not before
        assert len(plan.loads) == 4

    def test_column_change_rebuilds(self):
        state = LayoutState()
        cfg = make_config(4, 2)
        reconcile(state, cfg)
        cfg.grid_columns = 4
        plan = reconcile(state, cfg)
        assert plan.rebuilt
        assert len(plan.grid.rows) == 1

    def test_url_change_reloads_only_that_slot(self):
        state = LayoutState()
        cfg = make_config(3)
        reconcile(state, cfg)
        cfg.sources[2].url = "https://other.example.com"
        plan = reconcile(state, cfg)
        assert plan.loads == [(2, "https://other.example.com")]
        assert state.slots[2].applied_url == "https://other.example.com"

    def test_defaults_for_partial_sources(self):
        state = LayoutState()
        cfg = Config(app_title="", grid_columns=3, sources=[Source(), Source(name="Lobby", weight=0)])
        plan = reconcile(state, cfg)
        assert [s.title for s in state.slots] == ["PC 1", "Lobby"]
        assert [s.stretch for s in state.slots] == [1.0, 1.0]
        assert plan.loads[0] == (0, "about:blank")
        assert plan.title == "StreamWall"

    def test_needs_rebuild(self):
        state = LayoutState()
        assert needs_rebuild(state, 2, 3)
        reconcile(state, make_config(2, 3))
        assert not needs_rebuild(state, 2, 3)
        assert not needs_rebuild(state, 2, "3")
        assert needs_rebuild(state, 3, 3)
        assert needs_rebuild(state, 2, 2)


class TestSizing:
    """Weights are relative inside one row."""

    def test_row_shares(self):
        state = LayoutState()
        cfg = make_config(4, 2)
        cfg.sources[0].weight = 2
        cfg.sources[1].weight = 1
        cfg.sources[2].weight = 3
        cfg.sources[3].weight = 3
        plan = reconcile(state, cfg)
        assert row_shares(plan.grid.rows[0]) == pytest.approx([2 / 3, 1 / 3])
        assert row_shares(plan.grid.rows[1]) == pytest.approx([0.5, 0.5])

    def test_empty_row(self):
        assert row_shares([]) == []

    @pytest.mark.parametrize("raw, expected", [
        (None, 1.0), ("2", 2.0), (-3, 1.0), (float("nan"), 1.0), (4.5, 4.5),
        (float("inf"), 1.0), (float("-inf"), 1.0),
    ])
    def test_effective_weight(self, raw, expected):
        assert effective_weight(Source(weight=raw)) == expected

    def test_stretch_units_follow_weights(self):
        state = LayoutState()
        cfg = make_config(3, 3)
        cfg.sources[0].weight = 2
        plan = reconcile(state, cfg)
        assert stretch_units(plan.grid.rows[0]) == [500, 250, 250]

    @pytest.mark.parametrize("text", ["1e999", "1e10"])
    def test_huge_stored_weight_stays_in_qt_range(self, text):
        raw = '{"sources": [{"url": "https://a", "weight": %s}, {"url": "https://b"}]}' % text
        cfg = Config.from_dict(json.loads(raw))
        plan = reconcile(LayoutState(), cfg)
        units = stretch_units(plan.grid.rows[0])
        assert all(1 <= u <= 1000 for u in units)
        assert all(math.isfinite(s.stretch) for s in plan.grid.rows[0])

    def test_stretch_units_empty_row(self):
        assert stretch_units([]) == []
