"""Shared fixtures for the test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from resilient_json.config import DecoderSettings
from resilient_json.models.hints import SchemaHints
from resilient_json.utils import decode_tracking, logger


@pytest.fixture(autouse=True)
def _isolate_session_state() -> Iterator[None]:
    """Give every test fresh outcome counters and an empty log buffer."""
    decode_tracking.reset()
    logger.clear_log_buffer()
    yield
    logger.clear_log_buffer()


@pytest.fixture()
def settings() -> DecoderSettings:
    """Default decoder limits, independent of the environment."""
    return DecoderSettings()


@pytest.fixture()
def review_hints() -> SchemaHints:
    """Hints for a review-shaped response with a droppable ``fixes`` list."""
    return SchemaHints(tail_arrays=("fixes",), anchor_arrays=("issues",))


@pytest.fixture()
def long_text() -> str:
    """Prose well past the long-string threshold, with no sentence breaks."""
    return "word " * 400
