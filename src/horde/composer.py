# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""WaveComposer -- turns a wave number into a concrete spawn plan.

Pipeline for ``generate_wave_config(wave)``:

  1. total_count = min(base + (wave - 1) * per_wave, max_count)
  2. ingress     = min(initial + (wave - 1) // waves_per_unlock, max_ingress)
  3. roster      = unlocks with unlock_wave <= wave, each with a weight
  4. proportional split: round(total * weight / sum(weights)) per type,
     rounding remainder folded into the first group
  5. role caps: units over a role's cap move to the cheapest type whose
     role still has room; then budget fit: while the plan costs more than
     the wave budget, the most expensive unit that has a cheaper
     alternative is swapped for the cheapest one

Both refinement passes move units between types, never add or drop
them, so ``sum(group.count) == total_count`` holds exactly.  When every
role is saturated, or when even an all-cheapest plan is over budget,
the plan keeps its head count and a warning is logged.

DDA multipliers are read once per call; the same snapshot feeds the
budget and is carried on the WaveConfig for spawn-pacing consumers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from loguru import logger

from .analytics import BalanceAnalytics
from .budget import ThreatBudgetAllocator
from .tables import BalanceTables, Role, RoleCaps


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpawnGroup:
    enemy_type: str
    count: int


@dataclass(frozen=True)
class WaveComposition:
    counts_by_type: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    total_budget: float = 0.0
    spent_budget: float = 0.0


@dataclass(frozen=True)
class WaveConfig:
    """Immutable spawn plan for one wave."""

    wave_number: int
    total_count: int
    active_ingress_points: int
    spawn_groups: tuple[SpawnGroup, ...]
    composition: WaveComposition
    spawn_delay_multiplier: float = 1.0

    @property
    def is_empty(self) -> bool:
        return not self.spawn_groups

    def to_dict(self) -> dict:
        return {
            "wave_number": self.wave_number,
            "total_count": self.total_count,
            "active_ingress_points": self.active_ingress_points,
            "spawn_groups": [
                {"enemy_type": g.enemy_type, "count": g.count} for g in self.spawn_groups
            ],
            "composition": {
                "counts_by_type": dict(self.composition.counts_by_type),
                "total_budget": round(self.composition.total_budget, 2),
                "spent_budget": round(self.composition.spent_budget, 2),
            },
            "spawn_delay_multiplier": self.spawn_delay_multiplier,
        }


# ---------------------------------------------------------------------------
# WaveComposer
# ---------------------------------------------------------------------------

class WaveComposer:
    """Builds one WaveConfig per wave from budget, caps and roster."""

    def __init__(
        self,
        tables: BalanceTables,
        analytics: BalanceAnalytics,
        allocator: ThreatBudgetAllocator,
    ) -> None:
        self._tables = tables
        self._analytics = analytics
        self._allocator = allocator

    def total_count(self, wave_number: int) -> int:
        w = self._tables.waves
        wave = max(1, int(wave_number))
        return min(w.max_count, w.base_count + (wave - 1) * w.count_per_wave)

    def active_ingress_points(self, wave_number: int) -> int:
        w = self._tables.waves
        wave = max(1, int(wave_number))
        return min(
            w.max_ingress_points,
            w.initial_ingress_points + (wave - 1) // w.waves_per_ingress_unlock,
        )

    def available_types(self, wave_number: int) -> dict[str, float]:
        """Unlocked enemy types mapped to spawn weight, in roster order."""
        weights: dict[str, float] = {}
        for unlock in self._allocator.available_types(wave_number):
            weights[unlock.enemy_type] = weights.get(unlock.enemy_type, 0.0) + unlock.weight
        return weights

    def generate_wave_config(self, wave_number: int) -> WaveConfig:
        snapshot = self._allocator.modifier_snapshot()
        total_budget = self._allocator.get_budget(wave_number, snapshot.budget_multiplier)
        ingress = self.active_ingress_points(wave_number)
        weights = self.available_types(wave_number)

        if not weights:
            logger.warning(f"Wave {wave_number}: no enemy types unlocked -- empty spawn plan")
            return WaveConfig(
                wave_number=wave_number,
                total_count=0,
                active_ingress_points=ingress,
                spawn_groups=(),
                composition=WaveComposition(total_budget=total_budget),
                spawn_delay_multiplier=snapshot.spawn_delay_multiplier,
            )

        total = self.total_count(wave_number)
        costs = {t: self._analytics.enemy_cost(t) for t in weights}
        caps = self._allocator.get_role_caps()

        counts = proportional_split(total, weights)
        self._enforce_role_caps(wave_number, counts, costs, caps)
        self._fit_budget(wave_number, counts, costs, caps, total_budget)

        groups = tuple(SpawnGroup(t, c) for t, c in counts.items() if c > 0)
        spent = sum(c * costs[t] for t, c in counts.items())
        config = WaveConfig(
            wave_number=wave_number,
            total_count=total,
            active_ingress_points=ingress,
            spawn_groups=groups,
            composition=WaveComposition(
                counts_by_type=MappingProxyType({g.enemy_type: g.count for g in groups}),
                total_budget=total_budget,
                spent_budget=spent,
            ),
            spawn_delay_multiplier=snapshot.spawn_delay_multiplier,
        )
        logger.debug(
            f"Wave {wave_number}: {total} enemies via {ingress} ingress points, "
            f"budget {spent:.1f}/{total_budget:.1f}"
        )
        return config

    # -- Refinement passes ------------------------------------------------------

    def _role(self, enemy_type: str) -> Role:
        return self._tables.enemies[enemy_type].role

    def _role_total(self, counts: dict[str, int], role: Role) -> int:
        return sum(c for t, c in counts.items() if self._role(t) == role)

    def _has_room(self, counts: dict[str, int], caps: RoleCaps, role: Role) -> bool:
        return self._role_total(counts, role) < caps.cap_for(role)

    def _cheapest(self, counts: dict[str, int], costs: dict[str, float], candidates) -> str | None:
        order = list(counts)
        ranked = sorted(candidates, key=lambda t: (costs[t], order.index(t)))
        return ranked[0] if ranked else None

    def _enforce_role_caps(
        self,
        wave_number: int,
        counts: dict[str, int],
        costs: dict[str, float],
        caps: RoleCaps,
    ) -> None:
        for role in Role:
            excess = self._role_total(counts, role) - caps.cap_for(role)
            while excess > 0:
                donors = [t for t, c in counts.items() if c > 0 and self._role(t) == role]
                receiver = self._cheapest(
                    counts, costs,
                    [t for t in counts if self._role(t) != role and self._has_room(counts, caps, self._role(t))],
                )
                if receiver is None:
                    logger.warning(
                        f"Wave {wave_number}: role '{role.value}' over cap by {excess} "
                        f"and no other role has room"
                    )
                    break
                donor = max(donors, key=lambda t: (costs[t], list(counts).index(t)))
                counts[donor] -= 1
                counts[receiver] += 1
                excess -= 1

    def _fit_budget(
        self,
        wave_number: int,
        counts: dict[str, int],
        costs: dict[str, float],
        caps: RoleCaps,
        total_budget: float,
    ) -> None:
        spent = sum(c * costs[t] for t, c in counts.items())
        while spent > total_budget:
            swap = self._find_downgrade(counts, costs, caps)
            if swap is None:
                break
            donor, receiver = swap
            counts[donor] -= 1
            counts[receiver] += 1
            spent += costs[receiver] - costs[donor]

        max_unit = max((costs[t] for t, c in counts.items() if c > 0), default=0.0)
        if spent > total_budget + max_unit:
            logger.warning(
                f"Wave {wave_number}: cheapest plan costs {spent:.1f}, "
                f"over budget {total_budget:.1f}"
            )

    def _find_downgrade(
        self,
        counts: dict[str, int],
        costs: dict[str, float],
        caps: RoleCaps,
    ) -> tuple[str, str] | None:
        order = list(counts)
        donors = sorted(
            (t for t, c in counts.items() if c > 0),
            key=lambda t: (-costs[t], -order.index(t)),
        )
        for donor in donors:
            donor_role = self._role(donor)
            receiver = self._cheapest(
                counts, costs,
                [
                    t for t in counts
                    if costs[t] < costs[donor]
                    and (self._role(t) == donor_role or self._has_room(counts, caps, self._role(t)))
                ],
            )
            if receiver is not None:
                return donor, receiver
        return None


def proportional_split(total: int, weights: Mapping[str, float]) -> dict[str, int]:
    """Split *total* across *weights*; the sum is exactly *total*.

    Each type gets ``round(total * weight / sum(weights))`` (half-up); the
    rounding remainder is folded into the first type.  If a negative
    remainder exceeds the first type's count, the rest is taken from the
    largest remaining groups.
    """
    if not weights:
        return {}
    total_weight = sum(weights.values())
    if total_weight <= 0:
        counts = {t: 0 for t in weights}
        counts[next(iter(counts))] = total
        return counts

    counts = {t: math.floor(total * w / total_weight + 0.5) for t, w in weights.items()}
    first = next(iter(counts))
    counts[first] += total - sum(counts.values())

    if counts[first] < 0:
        deficit = -counts[first]
        counts[first] = 0
        for t in sorted((t for t in counts if t != first), key=lambda t: -counts[t]):
            take = min(deficit, counts[t])
            counts[t] -= take
            deficit -= take
            if deficit == 0:
                break
    return counts


def format_wave_report(config: WaveConfig, analytics: BalanceAnalytics) -> str:
    """Debug-panel text for one wave plan."""
    comp = config.composition
    lines = [
        f"=== WAVE {config.wave_number} ===",
        f"Budget: {comp.spent_budget:.1f} / {comp.total_budget:.1f}",
        f"Enemies: {config.total_count}",
        f"Ingress points: {config.active_ingress_points}",
        "",
        "Composition:",
    ]
    for group in config.spawn_groups:
        cost = analytics.enemy_cost(group.enemy_type)
        lines.append(
            f"  {group.enemy_type}: {group.count} "
            f"(cost: {cost:.2f} x {group.count} = {cost * group.count:.1f})"
        )
    if config.is_empty:
        lines.append("  (none)")
    return "\n".join(lines)
