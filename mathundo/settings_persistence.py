"""Settings persistence for per-document history preferences.

Settings are stored in an OS-appropriate location, indexed by document path,
and survive application restarts. The undo history itself is never persisted.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

from .constants import HistoryConstants

logger = logging.getLogger(__name__)


class SettingsPersistence:
    """Manages persistent storage of per-document settings.

    Settings are stored in a JSON file in the user's config directory,
    indexed by the absolute path of the document being edited.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize settings persistence.

        Args:
            config_dir: Directory holding the settings file. Defaults to the
                platform's user config directory.
        """
        if config_dir is None:
            config_dir = Path(platformdirs.user_config_dir(
                HistoryConstants.SETTINGS_APP_NAME, HistoryConstants.SETTINGS_APP_AUTHOR))
        self._config_dir = Path(config_dir)
        self._settings_file = self._config_dir / HistoryConstants.SETTINGS_FILENAME
        self._settings_cache: Optional[Dict[str, Dict[str, Any]]] = None

    def _ensure_config_dir(self) -> None:
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create config directory {self._config_dir}: {e}")

    def _load_all_settings(self) -> Dict[str, Dict[str, Any]]:
        """Load all settings from disk.

        Returns:
            Dictionary mapping document paths to their settings.
            Returns empty dict if file doesn't exist or can't be read.
        """
        if self._settings_cache is not None:
            return self._settings_cache

        if not self._settings_file.exists():
            self._settings_cache = {}
            return self._settings_cache

        try:
            with open(self._settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load settings from {self._settings_file}: {e}")
            self._settings_cache = {}
            return self._settings_cache

        if not isinstance(data, dict):
            logger.warning("Settings file has invalid format (not a dict), ignoring")
            data = {}
        self._settings_cache = data
        return self._settings_cache

    def _save_all_settings(self, settings: Dict[str, Dict[str, Any]]) -> bool:
        """Save all settings to disk atomically (temp file + rename).

        Returns:
            True if save was successful, False otherwise.
        """
        self._ensure_config_dir()
        temp_file = self._settings_file.with_suffix('.tmp')

        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
            temp_file.replace(self._settings_file)
            self._settings_cache = settings
            return True

        except OSError as e:
            logger.warning(f"Could not save settings to {self._settings_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False

    def load_settings(self, document_path: Optional[str]) -> Dict[str, Any]:
        """Load settings for a specific document.

        Args:
            document_path: Path to the document. If None, returns empty dict.

        Returns:
            Copy of the document's settings, empty if none are stored.
        """
        if document_path is None:
            return {}

        abs_path = os.path.abspath(document_path)
        doc_settings = self._load_all_settings().get(abs_path, {})

        if not isinstance(doc_settings, dict):
            logger.warning(f"Settings for {abs_path} are not a dict, ignoring")
            return {}

        return doc_settings.copy()

    def save_settings(self, document_path: Optional[str], settings: Dict[str, Any]) -> bool:
        """Save settings for a specific document.

        Args:
            document_path: Path to the document. If None, returns False.
            settings: Dictionary of settings to save.

        Returns:
            True if save was successful, False otherwise.
        """
        if document_path is None:
            return False

        abs_path = os.path.abspath(document_path)
        all_settings = dict(self._load_all_settings())
        all_settings[abs_path] = settings
        return self._save_all_settings(all_settings)

    @staticmethod
    def validate_setting(key: str, value: Any) -> bool:
        """Validate a setting value.

        Unknown keys are accepted for forward compatibility; None means
        "not set" and is always valid.
        """
        if value is None:
            return True

        if key == 'maximum_depth':
            if not isinstance(value, int) or isinstance(value, bool):
                return False
            return 1 <= value <= HistoryConstants.MAXIMUM_DEPTH_LIMIT

        if key == 'coalesce_typing':
            return isinstance(value, bool)

        return True

    def clear_cache(self) -> None:
        """Clear the in-memory cache of settings."""
        self._settings_cache = None


def resolve_maximum_depth(settings: Dict[str, Any]) -> int:
    """Return the configured history depth, or the default if unset or invalid."""
    value = settings.get('maximum_depth')
    if value is None:
        return HistoryConstants.MAXIMUM_DEPTH
    if not SettingsPersistence.validate_setting('maximum_depth', value):
        logger.warning(f"Ignoring invalid maximum_depth setting: {value!r}")
        return HistoryConstants.MAXIMUM_DEPTH
    return value


# Global instance
_persistence: Optional[SettingsPersistence] = None


def get_persistence() -> SettingsPersistence:
    """Get the global settings persistence instance."""
    global _persistence
    if _persistence is None:
        _persistence = SettingsPersistence()
    return _persistence
