# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Runtime settings for the balance core.

Settings are read from ``HORDE_*`` environment variables (or a ``.env``
file) through pydantic-settings.  They hold the dynamic difficulty
tunables -- classification thresholds, modifier bounds, step size,
cooldown, history length -- and the log level.  Static game data
(weapons, enemies, waves) lives in ``horde.tables`` instead.
"""

from __future__ import annotations

import sys

from loguru import logger
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Balance core settings, overridable via ``HORDE_<FIELD>``."""

    model_config = SettingsConfigDict(
        env_prefix="HORDE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # -- Dynamic difficulty ----------------------------------------------------
    dda_enabled: bool = True
    dda_adjustment_step: float = Field(default=0.05, gt=0, le=0.5)
    dda_adjustment_cooldown_s: float = Field(default=10.0, ge=0)
    dda_history_size: int = Field(default=50, ge=1)
    # Criteria that must agree before leaving "neutral"
    dda_min_criteria: int = Field(default=2, ge=1)

    # Struggling when below accuracy/kills/health, above damage/near deaths
    dda_struggling_accuracy: float = Field(default=0.25, ge=0, le=1)
    dda_struggling_damage_per_min: float = Field(default=50.0, ge=0)
    dda_struggling_kills_per_min: float = Field(default=6.0, ge=0)
    dda_struggling_health_percent: float = Field(default=0.3, ge=0, le=1)
    dda_struggling_near_deaths: int = Field(default=2, ge=0)

    # Dominating when above accuracy/kills/health, below damage/clear time
    dda_dominating_accuracy: float = Field(default=0.6, ge=0, le=1)
    dda_dominating_damage_per_min: float = Field(default=15.0, ge=0)
    dda_dominating_kills_per_min: float = Field(default=30.0, ge=0)
    dda_dominating_health_percent: float = Field(default=0.8, ge=0, le=1)
    dda_dominating_wave_clear_s: float = Field(default=20.0, ge=0)

    # Modifier bounds
    dda_spawn_delay_min: float = Field(default=0.6, gt=0)
    dda_spawn_delay_max: float = Field(default=1.5, gt=0)
    dda_budget_min: float = Field(default=0.7, gt=0)
    dda_budget_max: float = Field(default=1.3, gt=0)
    dda_drop_rate_min: float = Field(default=0.8, gt=0)
    dda_drop_rate_max: float = Field(default=1.5, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        for name in ("spawn_delay", "budget", "drop_rate"):
            lo = getattr(self, f"dda_{name}_min")
            hi = getattr(self, f"dda_{name}_max")
            if not lo <= 1.0 <= hi:
                raise ValueError(f"dda_{name} bounds must satisfy min <= 1.0 <= max, got [{lo}, {hi}]")
        if self.dda_struggling_accuracy >= self.dda_dominating_accuracy:
            raise ValueError("struggling accuracy threshold must be below the dominating one")
        if self.dda_struggling_health_percent >= self.dda_dominating_health_percent:
            raise ValueError("struggling health threshold must be below the dominating one")
        return self


_DEFAULT_HANDLER_ID = 0
_sink_id: int | None = None


def setup_logging(settings: Settings | None = None) -> int:
    """Route loguru output to stderr at the configured level.

    Replaces loguru's default stderr handler and any sink installed by an
    earlier call; sinks added by the host are left alone.  Returns the sink
    id so callers can ``logger.remove()`` it.
    """
    global _sink_id
    level = (settings or Settings()).log_level.upper()
    for handler_id in (_DEFAULT_HANDLER_ID, _sink_id):
        if handler_id is None:
            continue
        try:
            logger.remove(handler_id)
        except ValueError:
            pass  # already removed
    _sink_id = logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{function} - {message}",
    )
    return _sink_id
