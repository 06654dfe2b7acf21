"""Tests for setup_logging."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from childguard.log import MainFormatter, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Keeps pytest's own handlers intact across tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Root logger configuration."""

    def test_installs_single_console_handler(self) -> None:
        setup_logging(logging.DEBUG)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert isinstance(handler.formatter, MainFormatter)
        assert root.level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        setup_logging("info")
        setup_logging("info")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_defaults_to_configured_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from childguard.config import effective_settings

        monkeypatch.setattr(effective_settings, "LOG_LEVEL", "WARNING")
        setup_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            setup_logging("LOUD")

    def test_formatter_uses_configured_format(self) -> None:
        record = logging.LogRecord("childguard.test", logging.INFO, __file__, 1, "hello", None, None)
        formatted = MainFormatter().format(record)
        assert "INFO" in formatted
        assert "[childguard.test] - hello" in formatted
