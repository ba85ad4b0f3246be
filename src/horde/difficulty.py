# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""DifficultyController -- dynamic difficulty adjustment (DDA).

Architecture
------------
DifficultyController reads a rolling telemetry snapshot, classifies the
player as struggling / neutral / dominating, and nudges three global
multipliers.  Evaluation is driven by the host at wave boundaries
(``on_wave_complete``); hosts that also want periodic checks can call
``update()``, which is gated by a cooldown.

Classification counts agreeing criteria:
  - accuracy            (low = struggling, high = dominating)
  - damage taken / min  (high = struggling, low = dominating)
  - kills / min         (low = struggling, high = dominating)
  - health percent      (low = struggling, high = dominating)
  - near deaths         (high = struggling)
  - avg wave clear time (low = dominating, ignored while 0)
A state wins with at least ``dda_min_criteria`` votes and strictly more
votes than the other side.  Ties and boundary values stay neutral.

Adjustments (step = ``dda_adjustment_step``):
  - struggling:  spawn delay +step, budget -step, drop rate +step
  - dominating:  spawn delay -step, budget +step, drop rate -step/2
  - neutral:     every multiplier drifts back toward 1.0 by step/2
All three multipliers are clamped to their configured ranges, so an
unbroken streak in either direction saturates instead of diverging.

Every change to the multipliers appends one AdjustmentRecord to a
bounded deque; the oldest record is evicted once the cap is reached.

When disabled, ``get_modifiers()`` returns the identity multipliers and
wave-boundary ticks only classify (for observability).
"""

from __future__ import annotations

import dataclasses
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from loguru import logger

from .config import Settings


class PerformanceState(str, Enum):
    STRUGGLING = "struggling"
    NEUTRAL = "neutral"
    DOMINATING = "dominating"


@dataclass
class DDAModifiers:
    """Global difficulty multipliers.  1.0 everywhere is neutral."""

    spawn_delay_multiplier: float = 1.0  # >1 = slower spawns
    budget_multiplier: float = 1.0
    drop_rate_multiplier: float = 1.0

    def copy(self) -> DDAModifiers:
        return dataclasses.replace(self)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class AdjustmentRecord:
    """One entry of the audit trail."""

    timestamp: float
    state: PerformanceState
    action: str


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Rolling-window player metrics supplied by the telemetry feed."""

    accuracy: float = 0.0
    damage_taken_per_minute: float = 0.0
    kills_per_minute: float = 0.0
    current_health_percent: float = 1.0
    near_death_count: int = 0
    survival_time_seconds: float = 0.0
    average_wave_clear_seconds: float = 0.0


class TelemetrySource(Protocol):
    def snapshot(self) -> TelemetrySnapshot: ...


class DifficultyController:
    """Classifies player performance and owns the DDA multipliers."""

    def __init__(
        self,
        settings: Settings | None = None,
        telemetry: TelemetrySource | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings if settings is not None else Settings()
        self._telemetry = telemetry
        self._clock = clock
        self._enabled: bool = self._settings.dda_enabled
        self._modifiers = DDAModifiers()
        self._history: deque[AdjustmentRecord] = deque(maxlen=self._settings.dda_history_size)
        self._last_adjustment_time: float | None = None
        self.last_state: PerformanceState = PerformanceState.NEUTRAL

    # -- Wiring / switches ------------------------------------------------------

    def set_telemetry(self, source: TelemetrySource | None) -> None:
        self._telemetry = source

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Toggle DDA.  Disabling snaps the multipliers back to identity."""
        self._enabled = enabled
        if not enabled and self._modifiers != DDAModifiers():
            self._modifiers = DDAModifiers()
            self._record(self.last_state, "disabled")

    @property
    def settings(self) -> Settings:
        return self._settings

    # -- Classification ---------------------------------------------------------

    def evaluate_performance(self) -> PerformanceState:
        """Classify the current telemetry snapshot.  No feed means neutral."""
        if self._telemetry is None:
            return PerformanceState.NEUTRAL

        m = self._telemetry.snapshot()
        s = self._settings
        struggling = 0
        dominating = 0

        if m.accuracy < s.dda_struggling_accuracy:
            struggling += 1
        elif m.accuracy > s.dda_dominating_accuracy:
            dominating += 1

        if m.damage_taken_per_minute > s.dda_struggling_damage_per_min:
            struggling += 1
        elif m.damage_taken_per_minute < s.dda_dominating_damage_per_min:
            dominating += 1

        if m.kills_per_minute < s.dda_struggling_kills_per_min:
            struggling += 1
        elif m.kills_per_minute > s.dda_dominating_kills_per_min:
            dominating += 1

        if m.current_health_percent < s.dda_struggling_health_percent:
            struggling += 1
        elif m.current_health_percent > s.dda_dominating_health_percent:
            dominating += 1

        if m.near_death_count > s.dda_struggling_near_deaths:
            struggling += 1

        if 0 < m.average_wave_clear_seconds < s.dda_dominating_wave_clear_s:
            dominating += 1

        need = s.dda_min_criteria
        if struggling >= need and struggling > dominating:
            return PerformanceState.STRUGGLING
        if dominating >= need and dominating > struggling:
            return PerformanceState.DOMINATING
        return PerformanceState.NEUTRAL

    # -- Ticks ------------------------------------------------------------------

    def on_wave_complete(self) -> PerformanceState:
        """Wave-boundary tick: classify and, when enabled, adjust."""
        state = self.evaluate_performance()
        self.last_state = state
        if self._enabled and self._telemetry is not None:
            self._adjust(state)
            self._last_adjustment_time = self._clock()
        return state

    def update(self) -> PerformanceState | None:
        """Periodic tick honoring the adjustment cooldown.

        Returns the state acted upon, or None when skipped.
        """
        if not self._enabled or self._telemetry is None:
            return None
        now = self._clock()
        if (
            self._last_adjustment_time is not None
            and now - self._last_adjustment_time < self._settings.dda_adjustment_cooldown_s
        ):
            return None
        state = self.evaluate_performance()
        self.last_state = state
        self._adjust(state)
        self._last_adjustment_time = now
        return state

    # -- Modifiers --------------------------------------------------------------

    def get_modifiers(self) -> DDAModifiers:
        """Snapshot of the current multipliers (identity when disabled)."""
        if not self._enabled:
            return DDAModifiers()
        return self._modifiers.copy()

    def get_adjustment_history(self) -> list[AdjustmentRecord]:
        return list(self._history)

    def reset(self) -> None:
        """Reset multipliers, history and cooldown for a new session."""
        self._modifiers = DDAModifiers()
        self._history.clear()
        self._last_adjustment_time = None
        self.last_state = PerformanceState.NEUTRAL

    # -- Internal ---------------------------------------------------------------

    def _adjust(self, state: PerformanceState) -> None:
        before = self._modifiers.copy()
        if state == PerformanceState.STRUGGLING:
            self._ease_up()
            action = "eased"
        elif state == PerformanceState.DOMINATING:
            self._ramp_up()
            action = "ramped"
        else:
            self._normalize()
            action = "normalized"

        if self._modifiers != before:
            self._record(state, action)

    def _ease_up(self) -> None:
        s = self._settings
        step = s.dda_adjustment_step
        m = self._modifiers
        m.spawn_delay_multiplier = _clamp(m.spawn_delay_multiplier + step, s.dda_spawn_delay_min, s.dda_spawn_delay_max)
        m.budget_multiplier = _clamp(m.budget_multiplier - step, s.dda_budget_min, s.dda_budget_max)
        m.drop_rate_multiplier = _clamp(m.drop_rate_multiplier + step, s.dda_drop_rate_min, s.dda_drop_rate_max)

    def _ramp_up(self) -> None:
        s = self._settings
        step = s.dda_adjustment_step
        m = self._modifiers
        m.spawn_delay_multiplier = _clamp(m.spawn_delay_multiplier - step, s.dda_spawn_delay_min, s.dda_spawn_delay_max)
        m.budget_multiplier = _clamp(m.budget_multiplier + step, s.dda_budget_min, s.dda_budget_max)
        m.drop_rate_multiplier = _clamp(m.drop_rate_multiplier - step * 0.5, s.dda_drop_rate_min, s.dda_drop_rate_max)

    def _normalize(self) -> None:
        step = self._settings.dda_adjustment_step * 0.5
        m = self._modifiers
        m.spawn_delay_multiplier = _toward_one(m.spawn_delay_multiplier, step)
        m.budget_multiplier = _toward_one(m.budget_multiplier, step)
        m.drop_rate_multiplier = _toward_one(m.drop_rate_multiplier, step)

    def _record(self, state: PerformanceState, action: str) -> None:
        self._history.append(AdjustmentRecord(timestamp=self._clock(), state=state, action=action))
        m = self._modifiers
        logger.info(
            f"DDA {state.value} -> {action}: spawn_delay={m.spawn_delay_multiplier:.2f} "
            f"budget={m.budget_multiplier:.2f} drop_rate={m.drop_rate_multiplier:.2f}"
        )

    def generate_report(self) -> str:
        """Human-readable DDA status for the debug panel."""
        m = self._modifiers
        lines = [
            "=== DDA STATUS ===",
            f"Enabled: {self._enabled}",
            "",
            "Current Modifiers:",
            f"  Spawn Delay: {m.spawn_delay_multiplier * 100:.0f}%",
            f"  Budget: {m.budget_multiplier * 100:.0f}%",
            f"  Drop Rate: {m.drop_rate_multiplier * 100:.0f}%",
            "",
        ]
        if self._telemetry is not None:
            snap = self._telemetry.snapshot()
            lines.extend([
                "Current Performance:",
                f"  State: {self.evaluate_performance().value}",
                f"  Accuracy: {snap.accuracy * 100:.1f}%",
                f"  Damage/min: {snap.damage_taken_per_minute:.1f}",
                f"  Health: {snap.current_health_percent * 100:.0f}%",
                f"  Kills/min: {snap.kills_per_minute:.1f}",
                "",
            ])
        lines.append(f"Adjustments: {len(self._history)}")
        if self._history:
            now = self._clock()
            lines.append("Recent:")
            for rec in list(self._history)[-5:]:
                lines.append(f"  {now - rec.timestamp:.0f}s ago: {rec.state.value} -> {rec.action}")
        return "\n".join(lines)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _toward_one(value: float, step: float) -> float:
    if value > 1.0:
        return max(1.0, value - step)
    if value < 1.0:
        return min(1.0, value + step)
    return value
