"""Application configuration — JSON-based, saved atomically on every change.

Holds the manifest location, backup and restore folders, the search roots
and the restore redirects.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from savevault.core.strict_path import StrictPath
from savevault.errors import ConfigInvalidError
from savevault.models.locations import RedirectConfig, RootsConfig

_instance: "Config | None" = None

# Default data directory
DEFAULT_DATA_DIR = Path.home() / ".config" / "savevault"

# Settings that must hold a JSON array
_LIST_KEYS = ("roots", "restore.redirects")


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based application configuration."""

    _DEFAULTS: dict[str, Any] = {
        "manifest_path": "",
        "backup": {
            "path": "~/savevault-backup",
            "merge": False,
        },
        "restore": {
            "path": "~/savevault-backup",
            "redirects": [],
        },
        "roots": [],
    }

    def __init__(self, config_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = config_dir or DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults.  A bad file is ignored."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if not self._path.exists():
            return
        try:
            self._deep_merge(self._data, self._read_user_file())
        except ConfigInvalidError as e:
            logger.warning(f"{e}; using defaults")

    def _read_user_file(self) -> dict[str, Any]:
        try:
            with open(self._path, encoding="utf-8") as f:
                user_data = json.load(f)
        except (ValueError, OSError) as e:
            raise ConfigInvalidError(str(e)) from e
        if not isinstance(user_data, dict):
            raise ConfigInvalidError("top level must be an object")
        for key in _LIST_KEYS:
            node: Any = user_data
            for part in key.split("."):
                node = node.get(part) if isinstance(node, dict) else None
            if node is not None and not isinstance(node, list):
                raise ConfigInvalidError(f"'{key}' must be a list")
        return user_data

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> None:
        """Persist config to disk through a temporary file."""
        tmp_path = self._path.with_suffix(".tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            tmp_path.unlink(missing_ok=True)

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def manifest_path(self) -> Path | None:
        raw = self.get("manifest_path", "")
        return Path(raw).expanduser() if raw else None

    @manifest_path.setter
    def manifest_path(self, value: Path | None) -> None:
        self.set("manifest_path", str(value) if value else "")

    @property
    def backup_path(self) -> StrictPath:
        return StrictPath(str(self.get("backup.path", "")))

    @backup_path.setter
    def backup_path(self, value: StrictPath) -> None:
        self.set("backup.path", value.raw)

    @property
    def merge(self) -> bool:
        return bool(self.get("backup.merge", False))

    @merge.setter
    def merge(self, value: bool) -> None:
        self.set("backup.merge", value)

    @property
    def restore_path(self) -> StrictPath:
        return StrictPath(str(self.get("restore.path", "")))

    @restore_path.setter
    def restore_path(self, value: StrictPath) -> None:
        self.set("restore.path", value.raw)

    @property
    def roots(self) -> list[RootsConfig]:
        roots: list[RootsConfig] = []
        for entry in self.get("roots", []) or []:
            try:
                roots.append(RootsConfig.from_dict(entry))
            except (AttributeError, ValueError) as e:
                logger.warning(f"Skipping invalid root {entry!r}: {e}")
        return roots

    @roots.setter
    def roots(self, value: list[RootsConfig]) -> None:
        self.set("roots", [root.to_dict() for root in value])

    @property
    def redirects(self) -> list[RedirectConfig]:
        redirects: list[RedirectConfig] = []
        for entry in self.get("restore.redirects", []) or []:
            try:
                redirects.append(RedirectConfig.from_dict(entry))
            except AttributeError as e:
                logger.warning(f"Skipping invalid redirect {entry!r}: {e}")
        return redirects

    @redirects.setter
    def redirects(self, value: list[RedirectConfig]) -> None:
        self.set("restore.redirects", [redirect.to_dict() for redirect in value])
