"""Path discovery for ftpsession.

Locates the per-user configuration directory that holds the saved
connection profile. Nothing is created here; SettingsManager.save()
creates the directory on first write.
"""

import os
import sys
from pathlib import Path


# Application name for config directories
APP_NAME = "ftpsession"


def get_app_data_dir() -> Path:
    """
    Get the application data directory.

    Returns:
        Path to the app data directory, which may not exist yet

    Platform-specific locations:
        - Windows: %APPDATA%/ftpsession
        - Linux: $XDG_CONFIG_HOME/ftpsession, default ~/.config/ftpsession
        - macOS: ~/Library/Application Support/ftpsession
    """
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")

    return base / APP_NAME


def get_settings_path() -> Path:
    """Path to the saved connection profile (settings.json)."""
    return get_app_data_dir() / "settings.json"
