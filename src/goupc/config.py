"""Persistent goupc configuration, stored as a small YAML file."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

APP_NAME = "goupc"
CONFIG_FILENAME = "config.yaml"

#: Keys known to the store and their defaults.
DEFAULTS: dict[str, Any] = {
    "apiKey": "",
}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read."""


def default_config_path() -> Path:
    """Return the configuration file location.

    ``$GOUPC_CONFIG_DIR`` wins, then ``$XDG_CONFIG_HOME/goupc``, then
    ``~/.config/goupc``.
    """
    override = os.environ.get("GOUPC_CONFIG_DIR")
    if override:
        return Path(override).expanduser() / CONFIG_FILENAME
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / APP_NAME / CONFIG_FILENAME


class ConfigStore:
    """Key-value configuration backed by a YAML file.

    One store is opened per CLI invocation and handed to the commands that
    need it.  Every read goes to the file, so separate invocations always see
    each other's changes.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def open(cls, path: Path | None = None) -> "ConfigStore":
        """Open the store at *path*, or at :func:`default_config_path`."""
        return cls(path or default_config_path())

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, OSError) as e:
            raise ConfigError(f"Cannot read config file {self.path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.path} does not contain a mapping")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
        logger.debug("Wrote config to %s", self.path)

    def get(self, key: str) -> Any:
        """Return the stored value for *key*, or its default."""
        return self._load().get(key, DEFAULTS.get(key))

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def get_all(self) -> dict[str, Any]:
        """Return all values, defaults included."""
        return {**DEFAULTS, **self._load()}

    def clear(self) -> None:
        """Delete every stored value."""
        self.path.unlink(missing_ok=True)
        logger.debug("Removed config file %s", self.path)

    def is_configured(self) -> bool:
        """Return True if a non-blank API key is stored."""
        key = self.get("apiKey")
        return isinstance(key, str) and bool(key.strip())
