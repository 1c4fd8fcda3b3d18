"""Shared test fixtures."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_contextvars():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
