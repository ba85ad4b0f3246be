# Created by Matthew Valancy
# Copyright 2026 Valpatel Software LLC
# Licensed under AGPL-3.0 — see LICENSE for details.
"""Root conftest -- loguru capture shared by every test package."""

import pytest
from loguru import logger


@pytest.fixture
def log_messages():
    """Collect loguru output as ``"LEVEL: message"`` strings.

    pytest's caplog only sees the stdlib logging module, so loguru gets
    its own list sink for the duration of the test.
    """
    messages: list[str] = []
    sink_id = logger.add(
        lambda msg: messages.append(str(msg).rstrip("\n")),
        level="DEBUG",
        format="{level}: {message}",
    )
    yield messages
    logger.remove(sink_id)
