# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Shared fixtures for horde balance tests."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from factories import make_tables
from horde.analytics import BalanceAnalytics, StatsCache
from horde.budget import ThreatBudgetAllocator
from horde.composer import WaveComposer
from horde.config import Settings
from horde.tables import default_tables


@pytest.fixture
def settings():
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def tables():
    return make_tables()


@pytest.fixture
def analytics(tables):
    return BalanceAnalytics(tables, StatsCache())


@pytest.fixture
def allocator(tables, analytics):
    return ThreatBudgetAllocator(tables, analytics)


@pytest.fixture
def composer(tables, analytics, allocator):
    return WaveComposer(tables, analytics, allocator)


@pytest.fixture
def game_tables():
    return default_tables()


@pytest.fixture
def game_analytics(game_tables):
    return BalanceAnalytics(game_tables, StatsCache())
