# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Static balance tables -- raw weapon/enemy stats and wave constants.

Everything the balance core consumes at startup lives here as frozen
Pydantic models.  One ``BalanceTables`` instance is built per session
(``default_tables()`` or ``BalanceTables.model_validate(data)``) and
passed by reference into the analytics, budget, composer and difficulty
components.  The tables are never mutated; a hot-reload builds a new
instance and clears the derived-stats cache.

Units:
  - times are milliseconds (``fire_rate_ms``, ``reload_time_ms``, ...)
  - speeds are pixels per second, distances are pixels
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    """Behavioral role of an enemy type, used for composition caps."""

    FODDER = "fodder"
    RUSHER = "rusher"
    TANK = "tank"
    RANGED = "ranged"
    SPECIAL = "special"


class BudgetCurve(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"


class Metric(str, Enum):
    """Derived metric checked by a validation range."""

    TTK = "ttk"
    TTC = "ttc"
    SUSTAINED_DPS = "sustained_dps"
    COST = "cost"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# Raw stat records
# ---------------------------------------------------------------------------

class WeaponStats(BaseModel):
    """Raw firearm stats."""

    model_config = ConfigDict(frozen=True)

    damage: float = Field(..., ge=0)
    fire_rate_ms: float = Field(..., gt=0, description="Delay between shots")
    magazine_size: int = Field(..., ge=1)
    reload_time_ms: float = Field(default=0.0, ge=0)
    pellet_count: int = Field(default=1, ge=1)


class EnemyStats(BaseModel):
    """Raw enemy stats."""

    model_config = ConfigDict(frozen=True)

    health: float = Field(..., ge=0)
    move_speed: float = Field(..., ge=0)
    attack_damage: float = Field(..., ge=0)
    attack_cooldown_ms: float = Field(..., gt=0)
    role: Role = Role.FODDER
    # Qualitative danger beyond raw stats (buffs allies, resurrects, ranged...)
    special_factor: float = Field(default=1.0, ge=1.0)
    charge_range: float | None = Field(default=None, ge=0)
    charge_multiplier: float | None = Field(default=None, ge=1.0)


class SpawnUnlock(BaseModel):
    """An enemy type entering the roster at ``unlock_wave``."""

    model_config = ConfigDict(frozen=True)

    enemy_type: str
    unlock_wave: int = Field(..., ge=1)
    weight: float = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Progression / budget / caps
# ---------------------------------------------------------------------------

class WaveProgression(BaseModel):
    """Enemy count and ingress point growth, plus the unlock roster."""

    model_config = ConfigDict(frozen=True)

    base_count: int = Field(default=5, ge=0)
    count_per_wave: int = Field(default=3, ge=0)
    max_count: int = Field(default=50, ge=0)
    initial_ingress_points: int = Field(default=2, ge=0)
    waves_per_ingress_unlock: int = Field(default=5, ge=1)
    max_ingress_points: int = Field(default=8, ge=0)
    unlocks: list[SpawnUnlock] = Field(default_factory=list)


class ThreatConfig(BaseModel):
    """Threat budget curve.  Budget is in baseline-enemy equivalents."""

    model_config = ConfigDict(frozen=True)

    base_budget: float = Field(default=10.0, ge=0)
    budget_per_wave: float = Field(default=6.0, ge=0)
    curve: BudgetCurve = BudgetCurve.LINEAR
    exponential_factor: float = Field(default=1.1, gt=1.0)


class RoleCaps(BaseModel):
    """Per-role ceilings on how many units of a role a wave may contain."""

    model_config = ConfigDict(frozen=True)

    fodder: int = Field(default=40, ge=0)
    rusher: int = Field(default=12, ge=0)
    tank: int = Field(default=4, ge=0)
    ranged: int = Field(default=6, ge=0)
    special: int = Field(default=8, ge=0)

    def cap_for(self, role: Role) -> int:
        return getattr(self, Role(role).value)


class ValidationRange(BaseModel):
    """Acceptance band for one derived metric.

    ``below`` / ``above`` pick the severity reported when the value falls
    under ``min`` or over ``max``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    metric: Metric
    min: float
    max: float
    enemy: str | None = None
    weapon: str | None = None
    distance: str | None = None
    below: Severity = Severity.WARNING
    above: Severity = Severity.WARNING
    description: str = ""

    @model_validator(mode="after")
    def _check_operands(self) -> "ValidationRange":
        if self.min > self.max:
            raise ValueError(f"{self.name}: min {self.min} > max {self.max}")
        if self.metric in (Metric.TTK, Metric.TTC, Metric.COST) and not self.enemy:
            raise ValueError(f"{self.name}: metric {self.metric.value} needs an enemy")
        if self.metric in (Metric.TTK, Metric.SUSTAINED_DPS) and not self.weapon:
            raise ValueError(f"{self.name}: metric {self.metric.value} needs a weapon")
        if self.metric == Metric.TTC and not self.distance:
            raise ValueError(f"{self.name}: metric ttc needs a distance")
        return self


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------

class BalanceTables(BaseModel):
    """The complete, immutable-per-session balance data table."""

    model_config = ConfigDict(frozen=True)

    weapons: dict[str, WeaponStats]
    enemies: dict[str, EnemyStats]
    baseline_enemy: str = "shambler"
    waves: WaveProgression = Field(default_factory=WaveProgression)
    threat: ThreatConfig = Field(default_factory=ThreatConfig)
    role_caps: RoleCaps = Field(default_factory=RoleCaps)
    reference_distances: dict[str, float] = Field(
        default_factory=lambda: dict(_REFERENCE_DISTANCES)
    )
    validation: list[ValidationRange] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_references(self) -> "BalanceTables":
        if self.baseline_enemy not in self.enemies:
            raise ValueError(f"baseline enemy '{self.baseline_enemy}' is not in the enemy table")
        if "door" not in self.reference_distances:
            raise ValueError("reference_distances must define 'door'")
        for unlock in self.waves.unlocks:
            if unlock.enemy_type not in self.enemies:
                raise ValueError(f"unlock references unknown enemy '{unlock.enemy_type}'")
        for rng in self.validation:
            if rng.enemy is not None and rng.enemy not in self.enemies:
                raise ValueError(f"{rng.name}: unknown enemy '{rng.enemy}'")
            if rng.weapon is not None and rng.weapon not in self.weapons:
                raise ValueError(f"{rng.name}: unknown weapon '{rng.weapon}'")
            if rng.distance is not None and rng.distance not in self.reference_distances:
                raise ValueError(f"{rng.name}: unknown distance '{rng.distance}'")
        return self

    def door_distance(self) -> float:
        return self.reference_distances["door"]


# ---------------------------------------------------------------------------
# Shipped game tables
# ---------------------------------------------------------------------------

_REFERENCE_DISTANCES: dict[str, float] = {
    "close": 150.0,   # point blank
    "medium": 300.0,
    "door": 500.0,    # ingress point to arena centre
    "far": 640.0,     # longest straight line in the arena
}

_WEAPONS: dict[str, dict] = {
    "pistol": {"damage": 10, "fire_rate_ms": 250, "magazine_size": 12, "reload_time_ms": 1000},
    "shotgun": {
        "damage": 8, "pellet_count": 6, "fire_rate_ms": 800,
        "magazine_size": 6, "reload_time_ms": 1500,
    },
    "smg": {"damage": 6, "fire_rate_ms": 100, "magazine_size": 30, "reload_time_ms": 1200},
    "sniper": {"damage": 80, "fire_rate_ms": 1200, "magazine_size": 5, "reload_time_ms": 2000},
}

_ENEMIES: dict[str, dict] = {
    "shambler": {
        "health": 30, "move_speed": 60, "attack_damage": 10,
        "attack_cooldown_ms": 1200, "role": "fodder",
    },
    "runner": {
        "health": 15, "move_speed": 150, "attack_damage": 8,
        "attack_cooldown_ms": 800, "role": "rusher", "special_factor": 1.3,
        "charge_range": 200, "charge_multiplier": 1.5,
    },
    "crawler": {
        "health": 20, "move_speed": 80, "attack_damage": 15,
        "attack_cooldown_ms": 1200, "role": "rusher", "special_factor": 1.4,
    },
    "tank": {
        "health": 200, "move_speed": 40, "attack_damage": 25,
        "attack_cooldown_ms": 1500, "role": "tank", "special_factor": 2.5,
    },
    "spitter": {
        "health": 25, "move_speed": 70, "attack_damage": 8,
        "attack_cooldown_ms": 2000, "role": "ranged", "special_factor": 2.0,
    },
    "bomber": {
        "health": 40, "move_speed": 90, "attack_damage": 5,
        "attack_cooldown_ms": 1000, "role": "special", "special_factor": 2.0,
    },
    "screamer": {
        "health": 20, "move_speed": 50, "attack_damage": 5,
        "attack_cooldown_ms": 3000, "role": "special", "special_factor": 8.0,
    },
    "splitter": {
        "health": 35, "move_speed": 70, "attack_damage": 8,
        "attack_cooldown_ms": 1000, "role": "special", "special_factor": 1.8,
    },
    "invisible": {
        "health": 25, "move_speed": 100, "attack_damage": 20,
        "attack_cooldown_ms": 1500, "role": "special", "special_factor": 2.5,
    },
    "necromancer": {
        "health": 30, "move_speed": 45, "attack_damage": 5,
        "attack_cooldown_ms": 4000, "role": "special", "special_factor": 10.0,
    },
}

_UNLOCKS: list[tuple[str, int, float]] = [
    ("shambler", 1, 0.7),
    ("runner", 1, 0.3),
    ("crawler", 6, 0.2),
    ("spitter", 6, 0.15),
    ("tank", 11, 0.1),
    ("bomber", 11, 0.1),
    ("screamer", 16, 0.1),
    ("splitter", 16, 0.1),
    ("invisible", 21, 0.05),
    ("necromancer", 21, 0.05),
]

_VALIDATION: list[dict] = [
    # TTK -- seconds of sustained fire
    {"name": "shambler_ttk_pistol", "metric": "ttk", "enemy": "shambler", "weapon": "pistol",
     "min": 0.5, "max": 1.5, "below": "warning", "above": "error",
     "description": "Shambler must die quickly to the pistol"},
    {"name": "tank_ttk_pistol", "metric": "ttk", "enemy": "tank", "weapon": "pistol",
     "min": 4.0, "max": 8.0, "below": "warning", "above": "error",
     "description": "Tank needs significant effort with the pistol"},
    {"name": "runner_ttk_smg", "metric": "ttk", "enemy": "runner", "weapon": "smg",
     "min": 0.1, "max": 0.4, "below": "warning", "above": "error",
     "description": "Runner is fragile, SMG is effective"},
    {"name": "tank_ttk_sniper", "metric": "ttk", "enemy": "tank", "weapon": "sniper",
     "min": 1.0, "max": 3.0, "description": "Sniper is effective against tanks"},
    # TTC -- seconds from an ingress point
    {"name": "shambler_ttc_door", "metric": "ttc", "enemy": "shambler", "distance": "door",
     "min": 7.0, "max": 12.0, "below": "error", "above": "warning",
     "description": "Shambler leaves time to react"},
    {"name": "runner_ttc_door", "metric": "ttc", "enemy": "runner", "distance": "door",
     "min": 2.5, "max": 5.0, "below": "error", "above": "warning",
     "description": "Runner is fast but manageable"},
    {"name": "tank_ttc_door", "metric": "ttc", "enemy": "tank", "distance": "door",
     "min": 10.0, "max": 16.0, "below": "error", "above": "warning",
     "description": "Tank is slow, time to prepare"},
    # Sustained DPS
    {"name": "pistol_sustained_dps", "metric": "sustained_dps", "weapon": "pistol",
     "min": 25.0, "max": 45.0, "description": "Pistol: moderate, reliable"},
    {"name": "smg_sustained_dps", "metric": "sustained_dps", "weapon": "smg",
     "min": 40.0, "max": 70.0, "description": "SMG: high DPS, burns ammo"},
    {"name": "shotgun_sustained_dps", "metric": "sustained_dps", "weapon": "shotgun",
     "min": 35.0, "max": 55.0, "description": "Shotgun: medium DPS, burst"},
    {"name": "sniper_sustained_dps", "metric": "sustained_dps", "weapon": "sniper",
     "min": 50.0, "max": 80.0, "description": "Sniper: high damage per hit"},
    # Threat cost, baseline = 1
    {"name": "runner_cost", "metric": "cost", "enemy": "runner",
     "min": 1.2, "max": 2.0, "description": "Runner costs more than a shambler"},
    {"name": "tank_cost", "metric": "cost", "enemy": "tank",
     "min": 3.0, "max": 6.0, "description": "Tank is significantly more expensive"},
    {"name": "screamer_cost", "metric": "cost", "enemy": "screamer",
     "min": 2.5, "max": 5.0, "description": "Screamer is a priority target"},
    {"name": "necromancer_cost", "metric": "cost", "enemy": "necromancer",
     "min": 3.5, "max": 7.0, "description": "Necromancer is very dangerous"},
]


def default_tables() -> BalanceTables:
    """Return the shipped game balance tables."""
    return BalanceTables.model_validate({
        "weapons": _WEAPONS,
        "enemies": _ENEMIES,
        "baseline_enemy": "shambler",
        "waves": {
            "base_count": 5,
            "count_per_wave": 3,
            "max_count": 50,
            "initial_ingress_points": 2,
            "waves_per_ingress_unlock": 5,
            "max_ingress_points": 8,
            "unlocks": [
                {"enemy_type": t, "unlock_wave": w, "weight": wt} for t, w, wt in _UNLOCKS
            ],
        },
        # Wider than the 5 + 2.5/wave curve so an all-shambler wave stays
        # affordable at every wave under the lowest DDA budget multiplier
        "threat": {"base_budget": 10.0, "budget_per_wave": 6.0, "curve": "linear"},
        # Caps sum above max_count (50) so a full wave always fits
        "role_caps": {"fodder": 40, "rusher": 12, "tank": 4, "ranged": 6, "special": 8},
        "reference_distances": _REFERENCE_DISTANCES,
        "validation": _VALIDATION,
    })
