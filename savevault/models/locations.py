"""Configured filesystem locations: search roots and restore redirects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from savevault.core.strict_path import StrictPath
from savevault.models.platform import Store


@dataclass(frozen=True)
class RootsConfig:
    """A base directory under which game installations are searched."""

    path: StrictPath
    store: Store = Store.OTHER

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RootsConfig:
        return cls(
            path=StrictPath(str(data.get("path", ""))),
            store=Store(data.get("store", Store.OTHER)),
        )

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path.raw, "store": str(self.store)}


@dataclass(frozen=True)
class RedirectConfig:
    """Restore files found under ``source`` into ``target`` instead."""

    source: StrictPath
    target: StrictPath

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RedirectConfig:
        return cls(
            source=StrictPath(str(data.get("source", ""))),
            target=StrictPath(str(data.get("target", ""))),
        )

    def to_dict(self) -> dict[str, str]:
        return {"source": self.source.raw, "target": self.target.raw}
