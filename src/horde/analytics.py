# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""BalanceAnalytics -- derived combat metrics from the raw balance tables.

Architecture
------------
BalanceAnalytics turns raw weapon/enemy stats into the numbers the rest
of the core reasons about.  Results are memoized in an explicit
``StatsCache`` owned by the caller (tests pass a fresh one, the game
shares one per session) and only dropped by ``clear_cache()``.

Weapon metrics (times in ms):
  damage_per_shot  = damage * pellet_count
  raw_dps          = damage_per_shot / (fire_rate_ms / 1000)
  time_to_empty    = magazine_size * fire_rate_ms
  cycle_time       = time_to_empty + reload_time_ms
  damage_per_cycle = magazine_size * damage_per_shot
  sustained_dps    = damage_per_cycle / (cycle_time / 1000)

Enemy metrics:
  TTK(enemy, weapon)  = health / sustained_dps(weapon)
  TTC(enemy, d)       = d / effective_speed   (0 if speed or d is 0)
  received_dps        = attack_damage / (attack_cooldown_ms / 1000)
  threat_score        = received_dps * (1 / TTC(door)) * special_factor
  cost                = threat_score / threat_score(baseline)

Sustained DPS amortizes reload downtime and is the DPS used for every
kill-time comparison.

Unknown ids never raise: a warning is logged and zeroed stats are
returned (and not cached) so dependent computation degrades to "no
threat" instead of crashing the game.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from loguru import logger

from .tables import (
    BalanceTables,
    EnemyStats,
    Metric,
    Severity,
    ValidationRange,
    WeaponStats,
)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DerivedWeaponStats:
    """Derived metrics for one weapon.  Times are milliseconds."""

    damage_per_shot: float
    raw_dps: float
    time_to_empty: float
    cycle_time: float
    damage_per_cycle: float
    sustained_dps: float

    @classmethod
    def zero(cls) -> DerivedWeaponStats:
        return cls(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class DerivedEnemyStats:
    """Derived metrics for one enemy type."""

    ttk_by_weapon: Mapping[str, float]
    ttc: Mapping[str, float]
    received_dps: float
    threat_score: float
    cost: float

    @classmethod
    def zero(cls) -> DerivedEnemyStats:
        return cls(
            ttk_by_weapon=MappingProxyType({}),
            ttc=MappingProxyType({}),
            received_dps=0.0,
            threat_score=0.0,
            cost=0.0,
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_balance()``.  ``valid`` is False iff errors exist."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class StatsCache:
    """Memoization store for derived stats, keyed by id.

    Entries are only valid for the tables they were derived from;
    ``tables`` remembers which ones, and BalanceAnalytics empties the
    cache when it is handed a cache filled from other tables.
    """

    def __init__(self) -> None:
        self.tables: BalanceTables | None = None
        self.weapons: dict[str, DerivedWeaponStats] = {}
        self.enemies: dict[str, DerivedEnemyStats] = {}

    def __len__(self) -> int:
        return len(self.weapons) + len(self.enemies)

    def clear(self) -> None:
        self.weapons.clear()
        self.enemies.clear()


# ---------------------------------------------------------------------------
# Pure formulas
# ---------------------------------------------------------------------------

def derive_weapon_stats(stats: WeaponStats) -> DerivedWeaponStats:
    damage_per_shot = stats.damage * stats.pellet_count
    raw_dps = damage_per_shot / (stats.fire_rate_ms / 1000.0)
    time_to_empty = stats.magazine_size * stats.fire_rate_ms
    cycle_time = time_to_empty + stats.reload_time_ms
    damage_per_cycle = stats.magazine_size * damage_per_shot
    sustained_dps = damage_per_cycle / (cycle_time / 1000.0)
    return DerivedWeaponStats(
        damage_per_shot=damage_per_shot,
        raw_dps=raw_dps,
        time_to_empty=time_to_empty,
        cycle_time=cycle_time,
        damage_per_cycle=damage_per_cycle,
        sustained_dps=sustained_dps,
    )


def received_dps(stats: EnemyStats) -> float:
    """DPS the player takes while in sustained contact."""
    return stats.attack_damage / (stats.attack_cooldown_ms / 1000.0)


def time_to_cross(stats: EnemyStats, distance: float) -> float:
    """Seconds for the enemy to cover *distance*.  0 for zero speed or distance."""
    if distance <= 0 or stats.move_speed <= 0:
        return 0.0
    speed = stats.move_speed
    if (
        stats.charge_range is not None
        and stats.charge_multiplier is not None
        and distance <= stats.charge_range
    ):
        speed *= stats.charge_multiplier
    return distance / speed


def threat_score(stats: EnemyStats, door_distance: float) -> float:
    """Faster, harder-hitting and more special enemies score higher."""
    ttc_door = time_to_cross(stats, door_distance)
    if ttc_door <= 0:
        return 0.0
    return received_dps(stats) * (1.0 / ttc_door) * stats.special_factor


# ---------------------------------------------------------------------------
# BalanceAnalytics
# ---------------------------------------------------------------------------

class BalanceAnalytics:
    """Memoized derived-metric provider over one ``BalanceTables``.

    A shared *cache* is rebound to *tables*; entries left over from other
    tables are dropped first.
    """

    def __init__(self, tables: BalanceTables, cache: StatsCache | None = None) -> None:
        self._tables = tables
        self._cache = cache if cache is not None else StatsCache()
        if self._cache.tables is not tables and len(self._cache):
            logger.info(f"Stats cache was filled from other tables -- dropping {len(self._cache)} entries")
            self._cache.clear()
        self._cache.tables = tables

    @property
    def tables(self) -> BalanceTables:
        return self._tables

    @property
    def cache(self) -> StatsCache:
        return self._cache

    # -- Weapons ----------------------------------------------------------------

    def weapon_stats(self, weapon_id: str) -> DerivedWeaponStats:
        """Return derived stats for *weapon_id* (memoized)."""
        cached = self._cache.weapons.get(weapon_id)
        if cached is not None:
            return cached
        raw = self._tables.weapons.get(weapon_id)
        if raw is None:
            logger.warning(f"Unknown weapon '{weapon_id}' -- using zeroed stats")
            return DerivedWeaponStats.zero()
        derived = derive_weapon_stats(raw)
        self._cache.weapons[weapon_id] = derived
        logger.debug(f"Derived weapon stats cached: {weapon_id}")
        return derived

    # -- Enemies ----------------------------------------------------------------

    def enemy_stats(self, enemy_id: str) -> DerivedEnemyStats:
        """Return derived stats for *enemy_id* (memoized)."""
        cached = self._cache.enemies.get(enemy_id)
        if cached is not None:
            return cached
        raw = self._tables.enemies.get(enemy_id)
        if raw is None:
            logger.warning(f"Unknown enemy '{enemy_id}' -- using zeroed stats")
            return DerivedEnemyStats.zero()

        ttk_by_weapon = {wid: self.ttk(enemy_id, wid) for wid in self._tables.weapons}
        ttc = {
            name: time_to_cross(raw, dist)
            for name, dist in self._tables.reference_distances.items()
        }
        score = threat_score(raw, self._tables.door_distance())
        derived = DerivedEnemyStats(
            ttk_by_weapon=MappingProxyType(ttk_by_weapon),
            ttc=MappingProxyType(ttc),
            received_dps=received_dps(raw),
            threat_score=score,
            cost=self._normalized_cost(enemy_id, score),
        )
        self._cache.enemies[enemy_id] = derived
        logger.debug(f"Derived enemy stats cached: {enemy_id}")
        return derived

    def ttk(self, enemy_id: str, weapon_id: str) -> float:
        """Seconds of sustained fire from *weapon_id* to kill *enemy_id*."""
        raw = self._tables.enemies.get(enemy_id)
        if raw is None:
            logger.warning(f"Unknown enemy '{enemy_id}' -- TTK is 0")
            return 0.0
        dps = self.weapon_stats(weapon_id).sustained_dps
        if dps <= 0:
            return 0.0
        return raw.health / dps

    def ttc(self, enemy_id: str, distance: float) -> float:
        """Seconds for *enemy_id* to cross *distance* pixels."""
        raw = self._tables.enemies.get(enemy_id)
        if raw is None:
            logger.warning(f"Unknown enemy '{enemy_id}' -- TTC is 0")
            return 0.0
        return time_to_cross(raw, distance)

    def enemy_cost(self, enemy_id: str) -> float:
        return self.enemy_stats(enemy_id).cost

    def _normalized_cost(self, enemy_id: str, score: float) -> float:
        baseline = self._tables.baseline_enemy
        if enemy_id == baseline:
            return 1.0
        baseline_score = self.enemy_stats(baseline).threat_score
        if baseline_score <= 0:
            logger.warning(f"Baseline enemy '{baseline}' has no threat -- costs are 0")
            return 0.0
        return max(0.0, score / baseline_score)

    def clear_cache(self) -> None:
        """Drop every memoized stat (tests, config hot-reload)."""
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"Derived stats cache cleared ({count} entries)")

    # -- Validation -------------------------------------------------------------

    def measure(self, rng: ValidationRange) -> float:
        """Re-derive the metric named by a validation range."""
        if rng.metric == Metric.TTK:
            return self.ttk(rng.enemy, rng.weapon)
        if rng.metric == Metric.TTC:
            return self.ttc(rng.enemy, self._tables.reference_distances[rng.distance])
        if rng.metric == Metric.SUSTAINED_DPS:
            return self.weapon_stats(rng.weapon).sustained_dps
        return self.enemy_cost(rng.enemy)

    def validate_balance(self) -> ValidationResult:
        """Check every validation range; out-of-band values are reported, never raised."""
        errors: list[str] = []
        warnings: list[str] = []
        for rng in self._tables.validation:
            value = self.measure(rng)
            if value < rng.min:
                severity = rng.below
                message = f"{rng.name} too low: {value:.2f} < {rng.min:g}"
            elif value > rng.max:
                severity = rng.above
                message = f"{rng.name} too high: {value:.2f} > {rng.max:g}"
            else:
                continue
            if rng.description:
                message += f" ({rng.description})"
            (errors if severity == Severity.ERROR else warnings).append(message)

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        logger.debug(
            f"Balance validation: {len(errors)} errors, {len(warnings)} warnings"
        )
        return result

    def generate_balance_report(self) -> str:
        """Human-readable dump of every derived metric plus validation."""
        lines: list[str] = ["=== BALANCE REPORT ===", ""]

        lines.append("--- WEAPONS ---")
        for wid in self._tables.weapons:
            ws = self.weapon_stats(wid)
            lines.append(f"{wid.upper()}:")
            lines.append(f"  Raw DPS: {ws.raw_dps:.1f}")
            lines.append(f"  Sustained DPS: {ws.sustained_dps:.1f}")
            lines.append(f"  Time to empty: {ws.time_to_empty / 1000:.2f}s")
            lines.append(f"  Full cycle: {ws.cycle_time / 1000:.2f}s")
            lines.append(f"  Damage/cycle: {ws.damage_per_cycle:g}")
            lines.append("")

        lines.append("--- ENEMIES ---")
        for eid in self._tables.enemies:
            es = self.enemy_stats(eid)
            lines.append(f"{eid.upper()}:")
            for wid, seconds in es.ttk_by_weapon.items():
                lines.append(f"  TTK ({wid}): {seconds:.2f}s")
            for name, seconds in es.ttc.items():
                lines.append(f"  TTC ({name}): {seconds:.2f}s")
            lines.append(f"  Received DPS: {es.received_dps:.1f}")
            lines.append(f"  Threat score: {es.threat_score:.2f}")
            lines.append(f"  Cost: {es.cost:.2f}")
            lines.append("")

        lines.append("--- VALIDATION ---")
        result = self.validate_balance()
        lines.append(f"Status: {'OK' if result.valid else 'ERRORS DETECTED'}")
        if result.errors:
            lines.append("Errors:")
            lines.extend(f"  [x] {e}" for e in result.errors)
        if result.warnings:
            lines.append("Warnings:")
            lines.extend(f"  [!] {w}" for w in result.warnings)

        return "\n".join(lines)
