# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Unit tests for ThreatBudgetAllocator -- budget curves, DDA scaling,
role caps and roster queries.
"""

from __future__ import annotations

import math

import pytest

from factories import FakeTelemetry, FixedModifiers, STRUGGLING, make_tables
from horde.analytics import BalanceAnalytics, StatsCache
from horde.budget import ThreatBudgetAllocator
from horde.config import Settings
from horde.difficulty import DDAModifiers, DifficultyController

pytestmark = pytest.mark.unit


def _allocator(modifiers=None, **threat):
    tables = make_tables(threat=threat) if threat else make_tables()
    return ThreatBudgetAllocator(tables, BalanceAnalytics(tables, StatsCache()), modifiers)


class TestBudgetCurves:

    def test_linear(self):
        alloc = _allocator(base_budget=10.0, budget_per_wave=2.0)
        assert alloc.get_budget(1) == pytest.approx(10.0)
        assert alloc.get_budget(5) == pytest.approx(18.0)

    def test_exponential(self):
        alloc = _allocator(base_budget=10.0, curve="exponential", exponential_factor=1.1)
        assert alloc.get_budget(1) == pytest.approx(10.0)
        assert alloc.get_budget(3) == pytest.approx(12.1)

    def test_logarithmic(self):
        alloc = _allocator(base_budget=5.0, budget_per_wave=2.5, curve="logarithmic")
        assert alloc.get_budget(1) == pytest.approx(10.0)
        assert alloc.get_budget(3) == pytest.approx(15.0)

    @pytest.mark.parametrize("curve", ["linear", "exponential", "logarithmic"])
    def test_non_decreasing(self, curve):
        alloc = _allocator(base_budget=10.0, budget_per_wave=3.0, curve=curve)
        budgets = [alloc.get_budget(w) for w in range(1, 60)]
        assert all(b2 >= b1 for b1, b2 in zip(budgets, budgets[1:]))

    def test_wave_zero_counts_as_one(self, allocator):
        assert allocator.get_budget(0) == allocator.get_budget(1)
        assert allocator.get_budget(-3) == allocator.get_budget(1)

    def test_exponential_overflow_is_infinite_not_nan(self):
        alloc = _allocator(base_budget=10.0, curve="exponential", exponential_factor=10.0)
        value = alloc.get_budget(10_000)
        assert math.isinf(value)
        assert value > 0


class TestBudgetMultiplier:

    def test_identity_without_source(self, allocator):
        assert allocator.current_multiplier() == 1.0
        assert allocator.modifier_snapshot() == DDAModifiers()

    def test_scaled_by_source(self):
        alloc = _allocator(FixedModifiers(DDAModifiers(budget_multiplier=0.5)), base_budget=20.0)
        assert alloc.get_budget(1) == pytest.approx(10.0)

    def test_explicit_multiplier_overrides_source(self):
        alloc = _allocator(FixedModifiers(DDAModifiers(budget_multiplier=0.5)), base_budget=20.0)
        assert alloc.get_budget(1, budget_multiplier=1.2) == pytest.approx(24.0)

    def test_nan_multiplier_ignored(self, log_messages):
        alloc = _allocator(FixedModifiers(DDAModifiers(budget_multiplier=float("nan"))), base_budget=20.0)
        assert alloc.current_multiplier() == 1.0
        assert alloc.get_budget(1) == pytest.approx(20.0)
        assert any("invalid budget multiplier" in m for m in log_messages)

    def test_negative_multiplier_never_negative_budget(self):
        alloc = _allocator(base_budget=20.0)
        assert alloc.get_budget(1, budget_multiplier=-2.0) >= 0.0

    def test_zero_multiplier(self):
        alloc = _allocator(base_budget=20.0)
        assert alloc.get_budget(4, budget_multiplier=0.0) == 0.0

    def test_follows_difficulty_controller(self):
        telemetry = FakeTelemetry(STRUGGLING)
        dda = DifficultyController(telemetry=telemetry)
        alloc = _allocator(dda, base_budget=20.0, budget_per_wave=0.0)
        dda.on_wave_complete()
        assert alloc.get_budget(1) == pytest.approx(19.0)

    def test_disabled_controller_is_identity(self):
        telemetry = FakeTelemetry(STRUGGLING)
        dda = DifficultyController(telemetry=telemetry)
        alloc = _allocator(dda, base_budget=20.0, budget_per_wave=0.0)
        dda.on_wave_complete()
        dda.set_enabled(False)
        assert alloc.get_budget(1) == pytest.approx(20.0)

    def test_set_modifier_source(self, allocator):
        allocator.set_modifier_source(FixedModifiers(DDAModifiers(budget_multiplier=1.3)))
        assert allocator.current_multiplier() == pytest.approx(1.3)
        allocator.set_modifier_source(None)
        assert allocator.current_multiplier() == 1.0


class TestRosterAndCaps:

    def test_role_caps_from_tables(self, allocator, tables):
        assert allocator.get_role_caps() is tables.role_caps

    def test_enemy_cost_delegates(self, allocator):
        assert allocator.enemy_cost("grunt") == 1.0
        assert allocator.enemy_cost("sprinter") == pytest.approx(3.0)

    def test_available_types_gated_by_wave(self):
        tables = make_tables(waves={"unlocks": [
            {"enemy_type": "grunt", "unlock_wave": 1, "weight": 1.0},
            {"enemy_type": "brute", "unlock_wave": 5, "weight": 0.2},
        ]})
        alloc = ThreatBudgetAllocator(tables, BalanceAnalytics(tables, StatsCache()))
        assert [u.enemy_type for u in alloc.available_types(4)] == ["grunt"]
        assert [u.enemy_type for u in alloc.available_types(5)] == ["grunt", "brute"]

    def test_estimate_enemy_count(self, allocator):
        # weighted mean cost 0.7 * 1 + 0.3 * 3 = 1.6
        assert allocator.estimate_enemy_count(16.0) == 10

    def test_estimate_with_empty_roster(self):
        tables = make_tables(waves={"unlocks": []})
        alloc = ThreatBudgetAllocator(tables, BalanceAnalytics(tables, StatsCache()))
        assert alloc.estimate_enemy_count(100.0) == 0


class TestShippedBudget:
    """The shipped curve always affords an all-baseline wave."""

    def test_baseline_wave_fits_at_budget_floor(self, game_tables, game_analytics):
        alloc = ThreatBudgetAllocator(game_tables, game_analytics)
        floor = Settings(_env_file=None).dda_budget_min
        w = game_tables.waves
        for wave in range(1, 61):
            count = min(w.max_count, w.base_count + (wave - 1) * w.count_per_wave)
            assert count * game_analytics.enemy_cost("shambler") <= alloc.get_budget(wave, floor), wave
