# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Horde balance core -- derived combat metrics, threat budgets, wave
composition and dynamic difficulty for the wave survival mode.

This package is an in-process library: the host game supplies the static
tables and a telemetry feed, and consumes WaveConfig plans and DDA
multipliers.
"""

from .analytics import (
    BalanceAnalytics,
    DerivedEnemyStats,
    DerivedWeaponStats,
    StatsCache,
    ValidationResult,
)
from .budget import ThreatBudgetAllocator
from .composer import SpawnGroup, WaveComposer, WaveComposition, WaveConfig, format_wave_report
from .config import Settings, setup_logging
from .difficulty import (
    AdjustmentRecord,
    DDAModifiers,
    DifficultyController,
    PerformanceState,
    TelemetrySnapshot,
)
from .engine import BalanceEngine
from .tables import BalanceTables, Role, RoleCaps, default_tables

__version__ = "0.1.0"

__all__ = [
    "AdjustmentRecord",
    "BalanceAnalytics",
    "BalanceEngine",
    "BalanceTables",
    "DDAModifiers",
    "DerivedEnemyStats",
    "DerivedWeaponStats",
    "DifficultyController",
    "PerformanceState",
    "Role",
    "RoleCaps",
    "Settings",
    "SpawnGroup",
    "StatsCache",
    "TelemetrySnapshot",
    "ThreatBudgetAllocator",
    "ValidationResult",
    "WaveComposer",
    "WaveComposition",
    "WaveConfig",
    "default_tables",
    "format_wave_report",
    "setup_logging",
]
