"""
Settings management for keifu
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from keifu.constants import (
    CONFIG_PATH,
    DEFAULT_FETCH_INTERVAL,
    DEFAULT_MAX_COMMITS,
    DEFAULT_REFRESH_INTERVAL,
    MIN_FETCH_INTERVAL,
    MIN_REFRESH_INTERVAL,
)

logger = logging.getLogger(__name__)


class Settings:
    """Manages application settings"""

    DEFAULT_SETTINGS = {
        "refresh": {
            "auto_refresh": True,
            "refresh_interval": DEFAULT_REFRESH_INTERVAL,  # Seconds between repository polls
            "auto_fetch": True,
            "fetch_interval": DEFAULT_FETCH_INTERVAL,  # Seconds between remote fetches
        },
        "graph": {
            "max_commits": DEFAULT_MAX_COMMITS,
        },
        "logging": {
            "file": "",  # Empty disables logging
            "level": "INFO",
        },
    }

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize settings"""
        if config_path is None:
            config_path = CONFIG_PATH

        self.config_path = config_path
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.load()

    def load(self) -> None:
        """Load settings from file, keeping defaults when it can't be read"""
        if not self.config_path.exists():
            return
        try:
            with open(self.config_path) as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring settings file %s: %s", self.config_path, e)
            return

        if not isinstance(loaded, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self.config_path)
            return
        # Merge with defaults to handle new settings
        self._merge_settings(self.settings, loaded)

    def _merge_settings(self, base: dict[str, Any], updates: dict[str, Any]) -> None:
        """Recursively merge settings dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                base_dict: dict[str, Any] = base[key]
                value_dict: dict[str, Any] = value
                self._merge_settings(base_dict, value_dict)
            else:
                base[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get a setting by dot-separated path (e.g., 'refresh.auto_fetch')"""
        value: Any = self.settings

        for part in path.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """Set a setting by dot-separated path"""
        parts = path.split(".")
        target: Any = self.settings

        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            target = target[part]

        target[parts[-1]] = value

    def _get_int(self, path: str, default: int, minimum: int) -> int:
        try:
            value = int(self.get(path, default))
        except (TypeError, ValueError):
            logger.warning("Setting %s is not a number, using %d", path, default)
            value = default
        return max(minimum, value)

    def get_auto_refresh(self) -> bool:
        return bool(self.get("refresh.auto_refresh", True))

    def get_refresh_interval(self) -> int:
        """Seconds between repository polls, at least MIN_REFRESH_INTERVAL"""
        return self._get_int("refresh.refresh_interval", DEFAULT_REFRESH_INTERVAL, MIN_REFRESH_INTERVAL)

    def get_auto_fetch(self) -> bool:
        return bool(self.get("refresh.auto_fetch", True))

    def get_fetch_interval(self) -> int:
        """Seconds between remote fetches.

        Fetching talks to the network, so the floor is higher than the
        refresh floor.
        """
        return self._get_int("refresh.fetch_interval", DEFAULT_FETCH_INTERVAL, MIN_FETCH_INTERVAL)

    def get_max_commits(self) -> int:
        return self._get_int("graph.max_commits", DEFAULT_MAX_COMMITS, 1)

    def get_log_file(self) -> str:
        return str(self.get("logging.file", "") or "")

    def get_log_level(self) -> int:
        """Logging level from its name, INFO when unknown"""
        name = str(self.get("logging.level", "INFO")).upper()
        level = logging.getLevelName(name)
        return level if isinstance(level, int) else logging.INFO
