"""Manifest models — what to look for, per game."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml
from loguru import logger

from savevault.errors import ManifestInvalidError


@dataclass
class Game:
    """
    Declarative description of one game's data.

    ``files`` and ``registry`` are keyed by path template / registry key;
    ``install_dir`` lists folder names the game installs under.  When no
    install dir is given, the game's own name is used.
    """

    files: dict[str, dict[str, Any]] | None = None
    install_dir: dict[str, dict[str, Any]] | None = None
    registry: dict[str, dict[str, Any]] | None = None
    steam_id: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Game:
        steam = data.get("steam") or {}
        steam_id = steam.get("id") if isinstance(steam, dict) else None
        if steam_id is not None:
            try:
                steam_id = int(steam_id)
            except (TypeError, ValueError) as e:
                raise ManifestInvalidError(f"'steam.id' must be an integer, got {steam_id!r}") from e
        return cls(
            files=_section(data, "files"),
            install_dir=_section(data, "installDir"),
            registry=_section(data, "registry"),
            steam_id=steam_id,
        )


def _section(data: dict[str, Any], key: str) -> dict[str, dict[str, Any]] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ManifestInvalidError(f"'{key}' must be a mapping")
    return {str(k): (v or {}) for k, v in value.items()}


@dataclass
class Manifest:
    """All known games, by name."""

    games: dict[str, Game] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Game:
        return self.games[name]

    def __contains__(self, name: object) -> bool:
        return name in self.games

    @classmethod
    def load_from_string(cls, content: str) -> Manifest:
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ManifestInvalidError(str(e)) from e
        if not isinstance(data, dict):
            raise ManifestInvalidError("top level must be a mapping of game names")

        games: dict[str, Game] = {}
        for name, entry in data.items():
            if not isinstance(entry, dict):
                raise ManifestInvalidError(f"entry for '{name}' must be a mapping")
            games[str(name)] = Game.from_dict(entry)
        logger.debug(f"Loaded manifest with {len(games)} game(s)")
        return cls(games)

    @classmethod
    def load(cls, path: str) -> Manifest:
        try:
            with open(path, encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ManifestInvalidError(str(e)) from e
        return cls.load_from_string(content)
