"""Tests for MergedSettings (defaults + JSON overrides)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from childguard import settings
from childguard.config import MergedSettings


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestDefaults:
    """Values taken from settings.py."""

    def test_missing_file_keeps_defaults(self, tmp_path: Path) -> None:
        merged = MergedSettings(tmp_path / "missing.json")
        assert merged.KILL_TIMEOUT == settings.KILL_TIMEOUT
        assert merged.DEFAULT_POLL_INTERVAL == 0.1
        assert merged.DEFAULT_KILL_TIMEOUT == 10.0
        assert merged.OVERRIDES_JSON_PATH == tmp_path / "missing.json"


class TestOverrides:
    """Overrides are applied only for whitelisted keys."""

    def test_kill_timeout_override_is_coerced_to_float(self, tmp_path: Path) -> None:
        merged = MergedSettings(_write(tmp_path / "o.json", {"KILL_TIMEOUT": 3}))
        assert merged.KILL_TIMEOUT == 3.0
        assert isinstance(merged.KILL_TIMEOUT, float)

    def test_log_level_is_upper_cased(self, tmp_path: Path) -> None:
        merged = MergedSettings(_write(tmp_path / "o.json", {"LOG_LEVEL": "debug"}))
        assert merged.LOG_LEVEL == "DEBUG"

    def test_non_modifiable_setting_is_ignored(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="childguard.config"):
            merged = MergedSettings(_write(tmp_path / "o.json", {"DEFAULT_POLL_INTERVAL": 5}))
        assert merged.DEFAULT_POLL_INTERVAL == 0.1
        assert "non-modifiable" in caplog.text

    def test_unknown_setting_is_ignored(self, tmp_path: Path) -> None:
        merged = MergedSettings(_write(tmp_path / "o.json", {"NOPE": 1}))
        assert not hasattr(merged, "NOPE")

    def test_negative_kill_timeout_is_ignored(self, tmp_path: Path) -> None:
        merged = MergedSettings(_write(tmp_path / "o.json", {"KILL_TIMEOUT": -2}))
        assert merged.KILL_TIMEOUT == settings.KILL_TIMEOUT

    def test_malformed_file_is_ignored(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "o.json"
        path.write_text("{not json")
        with caplog.at_level(logging.ERROR, logger="childguard.config"):
            merged = MergedSettings(path)
        assert merged.KILL_TIMEOUT == settings.KILL_TIMEOUT
        assert "Failed to load or parse" in caplog.text

    def test_non_object_file_is_ignored(self, tmp_path: Path) -> None:
        merged = MergedSettings(_write(tmp_path / "o.json", [1, 2]))
        assert merged.KILL_TIMEOUT == settings.KILL_TIMEOUT


class TestSaveOverrides:
    """Persisting the whitelisted subset."""

    def test_only_modifiable_keys_are_saved(self, tmp_path: Path) -> None:
        merged = MergedSettings(tmp_path / "o.json")
        merged.save_overrides({"KILL_TIMEOUT": 4.5, "DEFAULT_POLL_INTERVAL": 1})

        saved = json.loads((tmp_path / "o.json").read_text())
        assert saved == {"KILL_TIMEOUT": 4.5}
        assert MergedSettings(tmp_path / "o.json").KILL_TIMEOUT == 4.5

    def test_nothing_modifiable_writes_nothing(self, tmp_path: Path) -> None:
        merged = MergedSettings(tmp_path / "o.json")
        merged.save_overrides({"DEFAULT_POLL_INTERVAL": 1})
        assert not (tmp_path / "o.json").exists()
