# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""BalanceEngine -- wires analytics, budget, composer and DDA together.

The host game calls ``start_wave(n)`` when a wave begins and
``complete_wave()`` when it is cleared.  Both run synchronously on the
host's thread; telemetry ingestion stays outside and only refreshes the
snapshot the DDA reads.
"""

from __future__ import annotations

from loguru import logger

from .analytics import BalanceAnalytics, StatsCache
from .budget import ThreatBudgetAllocator
from .composer import WaveComposer, WaveConfig
from .config import Settings
from .difficulty import DifficultyController, PerformanceState, TelemetrySource
from .tables import BalanceTables, default_tables


class BalanceEngine:
    """One balance core per play session."""

    def __init__(
        self,
        tables: BalanceTables | None = None,
        settings: Settings | None = None,
        telemetry: TelemetrySource | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.cache = StatsCache()
        self.difficulty = DifficultyController(self.settings, telemetry)
        self._build(tables if tables is not None else default_tables())
        self.current_wave: int = 0
        self.wave_config: WaveConfig | None = None

    def _build(self, tables: BalanceTables) -> None:
        self.tables = tables
        self.analytics = BalanceAnalytics(tables, self.cache)
        self.allocator = ThreatBudgetAllocator(tables, self.analytics, self.difficulty)
        self.composer = WaveComposer(tables, self.analytics, self.allocator)

    def start_wave(self, wave_number: int | None = None) -> WaveConfig:
        """Compose the plan for *wave_number* (default: the next wave)."""
        self.current_wave = wave_number if wave_number is not None else self.current_wave + 1
        self.wave_config = self.composer.generate_wave_config(self.current_wave)
        return self.wave_config

    def complete_wave(self) -> PerformanceState:
        """Wave-clear boundary: let the DDA evaluate and adjust."""
        return self.difficulty.on_wave_complete()

    def reload_tables(self, tables: BalanceTables) -> None:
        """Swap in new tables and drop every memoized derived stat."""
        self.cache.clear()
        self._build(tables)
        logger.info("Balance tables reloaded")

    def reset(self) -> None:
        """Start a fresh session on the same tables."""
        self.difficulty.reset()
        self.current_wave = 0
        self.wave_config = None
