"""Unit tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from poly_query.core.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    root_level = logging.getLogger().level
    yield
    structlog.reset_defaults()
    logging.getLogger().setLevel(root_level)


class TestConfigureLogging:
    def test_json_events_reach_stdlib(self, caplog: pytest.LogCaptureFixture) -> None:
        configure_logging("DEBUG", json=True)
        with caplog.at_level(logging.DEBUG, logger="poly_query.test"):
            structlog.get_logger("poly_query.test").info("pool.connection_created", size=1)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "pool.connection_created"
        assert payload["size"] == 1
        assert payload["level"] == "info"
        assert payload["logger"] == "poly_query.test"
        assert "timestamp" in payload

    def test_level_filters_events(self, caplog: pytest.LogCaptureFixture) -> None:
        configure_logging("WARNING", json=True)
        structlog.get_logger("poly_query.quiet").debug("pool.connection_reused")
        assert not [r for r in caplog.records if r.name == "poly_query.quiet"]
