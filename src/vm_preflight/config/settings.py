"""
Preflight configuration store.

Resolves skip/warn overrides and reachability targets from, in order of
precedence: explicit overrides, VM_PREFLIGHT_* environment variables, and
the TOML file at ~/.vm-preflight/config.toml.
"""

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import tomli
import tomli_w

from vm_preflight.config import keys

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def default_config_path() -> Path:
    return Path.home() / ".vm-preflight" / "config.toml"


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


class PreflightConfig:
    """
    Layered lookup of preflight settings.

    Absent boolean keys resolve to False and absent string keys to "". The
    store is read at construction and passed explicitly to the orchestrator;
    nothing is looked up from process-wide state afterwards except the
    environment snapshot taken here.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.path = path if path is not None else default_config_path()
        self.overrides: dict[str, Any] = dict(overrides or {})
        self.environ = dict(os.environ if environ is None else environ)
        self._file_settings = self._load()

    def _load(self) -> dict[str, Any]:
        """Load settings from the TOML file, if present."""
        if not self.path.exists():
            return {}

        with open(self.path, "rb") as f:
            data = tomli.load(f)

        # Settings may live at top level or under [preflight]
        settings = dict(data.get("preflight", {}))
        settings.update({k: v for k, v in data.items() if k != "preflight"})
        return settings

    def _lookup(self, key: str) -> Any:
        if key in self.overrides:
            return self.overrides[key]

        env_name = keys.env_var_name(key)
        if env_name in self.environ:
            return self.environ[env_name]

        return self._file_settings.get(key)

    def lookup_bool(self, key: str) -> bool:
        value = self._lookup(key)
        result = False if value is None else _to_bool(value)
        logger.debug("lookup_bool(%s) -> %s", key, result)
        return result

    def lookup_string(self, key: str) -> str:
        value = self._lookup(key)
        return "" if value is None else str(value)

    def with_overrides(self, overrides: Mapping[str, Any]) -> "PreflightConfig":
        """Return a copy with additional explicit overrides applied."""
        merged = dict(self.overrides)
        merged.update(overrides)
        return PreflightConfig(path=self.path, overrides=merged, environ=self.environ)

    def view(self) -> dict[str, Any]:
        """Settings persisted in the config file."""
        return dict(self._file_settings)

    def set(self, key: str, value: Any) -> None:
        """
        Set a persistent setting. Call save() to write it.

        Raises:
            ValueError: Unknown key.
        """
        if key not in keys.ALL_KEYS:
            raise ValueError(f"Unknown config key '{key}'")

        if key in keys.BOOL_KEYS:
            value = _to_bool(value)
        else:
            value = str(value)

        self._file_settings[key] = value

    def unset(self, key: str) -> bool:
        """Remove a persistent setting. Returns True if it was set."""
        return self._file_settings.pop(key, None) is not None

    def save(self) -> None:
        """Write persistent settings to the TOML file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.path, "wb") as f:
            tomli_w.dump(dict(sorted(self._file_settings.items())), f)
