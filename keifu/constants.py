"""
Centralized constants for keifu.

This module contains hardcoded strings and magic numbers that are used
across the codebase.
"""

from pathlib import Path

# Settings
CONFIG_PATH = Path.home() / ".config" / "keifu" / "settings.json"

# Commit window loaded per refresh
DEFAULT_MAX_COMMITS = 500

# Refresh intervals (seconds)
DEFAULT_REFRESH_INTERVAL = 10
MIN_REFRESH_INTERVAL = 1
DEFAULT_FETCH_INTERVAL = 60
MIN_FETCH_INTERVAL = 10

# Navigation
PAGE_SIZE = 10

# Commit detail
MAX_FILES_TO_DISPLAY = 50
SHORT_ID_LENGTH = 7
