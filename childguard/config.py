"""
Effective childguard configuration.

`effective_settings` merges the defaults in settings.py with the JSON overrides
file. `MergedSettings.save_overrides` is public API for host programs that
want to persist a new KILL_TIMEOUT or LOG_LEVEL for later runs.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import childguard.settings as default_settings

log = logging.getLogger(__name__)


class MergedSettings:
    """
    Merges default settings with env and JSON overrides.

    This class provides a unified, attribute-based access point for all
    childguard configuration. It follows a clear precedence:
    1. Base values from `settings.py`.
    2. Overrides from the environment or `.env` file (handled by `python-dotenv` in settings.py).
    3. Overrides from the JSON overrides file for settings in `MODIFIABLE_SETTINGS`.
    """

    def __init__(self, overrides_path: Optional[Path] = None) -> None:
        """
        Initializes the settings object by loading defaults and overrides.

        :param overrides_path: JSON file to read overrides from. Defaults to OVERRIDES_JSON_PATH.
        """
        self.OVERRIDES_JSON_PATH: Path = Path(overrides_path or default_settings.OVERRIDES_JSON_PATH)

        self._load_defaults()
        self._load_overrides()

    def _load_defaults(self) -> None:
        """Loads all uppercase attributes from the settings.py module as defaults."""
        for key in dir(default_settings):
            if key.isupper() and key != "OVERRIDES_JSON_PATH":
                setattr(self, key, getattr(default_settings, key))

    def _coerce(self, key: str, value: Any) -> Any:
        """Coerces an override to the type of the default it replaces."""
        original_value = getattr(self, key)
        if isinstance(original_value, float):
            new_value = float(value)
            if new_value < 0:
                raise ValueError(f"{key} must be non-negative, got {new_value}")
            return new_value
        if isinstance(original_value, str):
            return str(value).upper() if key == "LOG_LEVEL" else str(value)
        return value

    def _load_overrides(self) -> None:
        """
        Loads and applies settings from the overrides file.

        It will only apply overrides for keys that are explicitly listed in
        the `MODIFIABLE_SETTINGS` set in `settings.py`.
        """
        if not self.OVERRIDES_JSON_PATH.exists():
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.error(f"Failed to load or parse overrides file '{self.OVERRIDES_JSON_PATH}': {e}")
            return

        if not isinstance(overrides, dict):
            log.error(f"Overrides file '{self.OVERRIDES_JSON_PATH}' must contain a JSON object. Ignoring.")
            return

        log.info(f"Loading configuration overrides from {self.OVERRIDES_JSON_PATH}")
        for key, value in overrides.items():
            if not hasattr(self, key):
                log.warning(f"Override setting '{key}' not found in default settings. Ignoring.")
                continue
            if key not in self.MODIFIABLE_SETTINGS:
                log.warning(f"Attempted to override non-modifiable setting '{key}'. Ignoring.")
                continue
            try:
                setattr(self, key, self._coerce(key, value))
                log.debug(f"Overridden setting: {key} = {getattr(self, key)}")
            except (ValueError, TypeError) as e:
                log.error(f"Could not apply override '{key}' = {value!r}: {e}")

    def save_overrides(self, overrides_to_save: Dict[str, Any]) -> None:
        """
        Saves the provided dictionary of settings to the overrides JSON file.

        Only keys present in `MODIFIABLE_SETTINGS` are persisted.

        :param overrides_to_save: A dictionary of settings to persist.
        """
        filtered_overrides = {
            key: value
            for key, value in overrides_to_save.items()
            if key in self.MODIFIABLE_SETTINGS
        }

        if not filtered_overrides:
            log.warning("No modifiable settings provided to save.")
            return

        try:
            with self.OVERRIDES_JSON_PATH.open('w') as f:
                json.dump(filtered_overrides, f, indent=4)
            log.info(f"Configuration overrides saved to {self.OVERRIDES_JSON_PATH}")
        except IOError as e:
            log.error(f"Failed to write to overrides file '{self.OVERRIDES_JSON_PATH}': {e}")

# Create a singleton instance to be imported by other modules
effective_settings = MergedSettings()
