# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Synthetic tables and fakes shared by the horde balance tests.

Synthetic tables keep the numbers small and hand-checkable:

  pistol   sustained DPS 30   (120 dmg per 4.0 s cycle)
  sniper   sustained DPS 50   (400 dmg per 8.0 s cycle)
  grunt    baseline, cost 1.0
  sprinter rusher, cost 3.0
  brute    tank, cost 10/3
  statue   special, never moves, cost 0
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from horde.analytics import BalanceAnalytics, StatsCache
from horde.budget import ThreatBudgetAllocator
from horde.composer import WaveComposer
from horde.difficulty import DDAModifiers, TelemetrySnapshot
from horde.tables import BalanceTables


_SYNTHETIC: dict = {
    "weapons": {
        "pistol": {"damage": 10, "fire_rate_ms": 250, "magazine_size": 12, "reload_time_ms": 1000},
        "sniper": {"damage": 80, "fire_rate_ms": 1200, "magazine_size": 5, "reload_time_ms": 2000},
    },
    "enemies": {
        "grunt": {
            "health": 30, "move_speed": 60, "attack_damage": 10,
            "attack_cooldown_ms": 1200, "role": "fodder",
        },
        "sprinter": {
            "health": 15, "move_speed": 150, "attack_damage": 8,
            "attack_cooldown_ms": 800, "role": "rusher",
        },
        "brute": {
            "health": 200, "move_speed": 40, "attack_damage": 25,
            "attack_cooldown_ms": 1500, "role": "tank", "special_factor": 2.5,
        },
        "statue": {
            "health": 50, "move_speed": 0, "attack_damage": 5,
            "attack_cooldown_ms": 1000, "role": "special",
        },
    },
    "baseline_enemy": "grunt",
    "waves": {
        "base_count": 8,
        "count_per_wave": 2,
        "max_count": 100,
        "initial_ingress_points": 1,
        "waves_per_ingress_unlock": 3,
        "max_ingress_points": 4,
        "unlocks": [
            {"enemy_type": "grunt", "unlock_wave": 1, "weight": 0.7},
            {"enemy_type": "sprinter", "unlock_wave": 1, "weight": 0.3},
        ],
    },
    "threat": {"base_budget": 1000.0, "budget_per_wave": 10.0, "curve": "linear"},
    "role_caps": {"fodder": 1000, "rusher": 1000, "tank": 1000, "ranged": 1000, "special": 1000},
    "reference_distances": {"close": 150.0, "door": 500.0},
    "validation": [],
}


_MERGED_KEYS = {"weapons", "enemies", "waves", "threat", "role_caps"}


def make_tables(**overrides) -> BalanceTables:
    """Synthetic tables.

    Overrides for the id tables and the nested config blocks merge one
    level deep; every other key is replaced outright.
    """
    data = copy.deepcopy(_SYNTHETIC)
    for key, value in overrides.items():
        if key in _MERGED_KEYS:
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return BalanceTables.model_validate(data)


def build_composer(tables: BalanceTables, modifiers=None) -> WaveComposer:
    analytics = BalanceAnalytics(tables, StatsCache())
    allocator = ThreatBudgetAllocator(tables, analytics, modifiers)
    return WaveComposer(tables, analytics, allocator)


@dataclass
class FakeTelemetry:
    """Mutable telemetry feed; tests swap ``current`` between ticks."""

    current: TelemetrySnapshot = field(default_factory=TelemetrySnapshot)

    def snapshot(self) -> TelemetrySnapshot:
        return self.current


@dataclass
class FixedModifiers:
    """Modifier source that always reports the same multipliers."""

    modifiers: DDAModifiers = field(default_factory=DDAModifiers)

    def get_modifiers(self) -> DDAModifiers:
        return self.modifiers.copy()


class FakeClock:
    """Manually advanced clock for cooldown tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


STRUGGLING = TelemetrySnapshot(
    accuracy=0.1,
    damage_taken_per_minute=80.0,
    kills_per_minute=2.0,
    current_health_percent=0.2,
    near_death_count=3,
)

DOMINATING = TelemetrySnapshot(
    accuracy=0.8,
    damage_taken_per_minute=5.0,
    kills_per_minute=40.0,
    current_health_percent=0.95,
    average_wave_clear_seconds=15.0,
)

NEUTRAL = TelemetrySnapshot(
    accuracy=0.4,
    damage_taken_per_minute=30.0,
    kills_per_minute=15.0,
    current_health_percent=0.5,
)
