# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""ThreatBudgetAllocator -- per-wave threat budget and role capacity.

The threat budget is an abstract currency, measured in baseline-enemy
equivalents, that a wave spends on its composition.  It grows with the
wave number along the configured curve and is scaled by the DDA's
``budget_multiplier``:

  linear       base + (wave - 1) * per_wave
  exponential  base * factor ** (wave - 1)
  logarithmic  base + per_wave * log2(wave + 1) * 2

Role caps bound how many units of each role a wave may contain,
independent of the budget, so an affordable but degenerate wave (all
tanks) can never be composed.
"""

from __future__ import annotations

import math
from typing import Protocol

from loguru import logger

from .analytics import BalanceAnalytics
from .difficulty import DDAModifiers
from .tables import BalanceTables, BudgetCurve, RoleCaps, SpawnUnlock


class ModifierSource(Protocol):
    def get_modifiers(self) -> DDAModifiers: ...


class ThreatBudgetAllocator:
    """Computes spendable budget per wave and exposes role caps."""

    def __init__(
        self,
        tables: BalanceTables,
        analytics: BalanceAnalytics,
        modifiers: ModifierSource | None = None,
    ) -> None:
        self._tables = tables
        self._analytics = analytics
        self._modifiers = modifiers

    def set_modifier_source(self, source: ModifierSource | None) -> None:
        self._modifiers = source

    def base_budget(self, wave_number: int) -> float:
        """Unscaled budget for *wave_number* (waves below 1 count as 1)."""
        cfg = self._tables.threat
        w = max(1, int(wave_number))
        if cfg.curve == BudgetCurve.EXPONENTIAL:
            try:
                return cfg.base_budget * math.pow(cfg.exponential_factor, w - 1)
            except OverflowError:
                return math.inf
        if cfg.curve == BudgetCurve.LOGARITHMIC:
            return cfg.base_budget + cfg.budget_per_wave * math.log2(w + 1) * 2
        return cfg.base_budget + (w - 1) * cfg.budget_per_wave

    def modifier_snapshot(self) -> DDAModifiers:
        """One read of the DDA multipliers (identity without a DDA)."""
        if self._modifiers is None:
            return DDAModifiers()
        return self._modifiers.get_modifiers()

    def current_multiplier(self) -> float:
        """Budget multiplier from the DDA, 1.0 without one."""
        return _checked_multiplier(self.modifier_snapshot().budget_multiplier)

    def get_budget(self, wave_number: int, budget_multiplier: float | None = None) -> float:
        """Spendable budget for *wave_number*.  Never negative or NaN.

        Pass *budget_multiplier* to reuse a modifier snapshot taken earlier
        in the same phase.
        """
        if budget_multiplier is None:
            mult = self.current_multiplier()
        else:
            mult = _checked_multiplier(budget_multiplier)
        value = self.base_budget(wave_number) * mult
        if math.isnan(value) or value < 0:
            return 0.0
        return value

    def get_role_caps(self) -> RoleCaps:
        return self._tables.role_caps

    def enemy_cost(self, enemy_type: str) -> float:
        return self._analytics.enemy_cost(enemy_type)

    def available_types(self, wave_number: int) -> list[SpawnUnlock]:
        """Roster entries unlocked at *wave_number*, in roster order."""
        return [u for u in self._tables.waves.unlocks if u.unlock_wave <= wave_number]

    def estimate_enemy_count(self, budget: float, wave_number: int = 1) -> int:
        """Rough head count a budget buys at the roster's weighted mean cost."""
        roster = self.available_types(wave_number)
        total_weight = sum(u.weight for u in roster)
        if not roster or total_weight <= 0:
            return 0
        mean_cost = sum(u.weight * self.enemy_cost(u.enemy_type) for u in roster) / total_weight
        if mean_cost <= 0 or not math.isfinite(budget):
            return 0
        return round(budget / mean_cost)


def _checked_multiplier(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        logger.warning(f"Ignoring invalid budget multiplier {value!r}")
        return 1.0
    return value
