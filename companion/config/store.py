"""
Key-value settings store backed by a YAML file.

The store is an explicit object handed to whoever needs it; nothing reads the
settings file behind the caller's back.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import platformdirs
import yaml

APP_NAME = "companion-chat"
SETTINGS_FILE_NAME = "settings.yml"


def default_settings_path() -> Path:
    """Per-user settings file location."""
    return Path(platformdirs.user_config_dir(APP_NAME)) / SETTINGS_FILE_NAME


class SettingsStore:
    """Opaque ``get`` / ``set`` / ``persist`` over a YAML mapping."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else default_settings_path()
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValueError(f"Cannot read settings file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {self.path} must contain a mapping")
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def persist(self) -> None:
        """Write the current values to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._data, f, default_flow_style=False, sort_keys=False)
