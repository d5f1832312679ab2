"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from savevault.core.registry import RegistryKeyInfo
from savevault.core.strict_path import StrictPath
from savevault.errors import RegistryError


class FakeRegistry:
    """In-memory RegistryProvider."""

    def __init__(self, keys: set[str] | None = None, broken: set[str] | None = None) -> None:
        self.keys = set(keys or ())
        self.broken = set(broken or ())
        self.captured: list[str] = []
        self.saved: list[StrictPath] = []
        self.restored: list[StrictPath] = []
        self.fail_restore = False

    def store_key(self, full_path: str) -> RegistryKeyInfo:
        if full_path in self.broken:
            raise RegistryError(f"access denied: {full_path}")
        found = full_path in self.keys
        if found:
            self.captured.append(full_path)
        return RegistryKeyInfo(found=found)

    def save(self, file: StrictPath) -> None:
        with open(file.interpret(), "w", encoding="utf-8") as f:
            f.write("\n".join(self.captured))
        self.saved.append(file)
        self.captured = []

    def reset(self) -> None:
        self.captured = []

    def load(self, file: StrictPath) -> list[str] | None:
        with open(file.interpret(), encoding="utf-8") as f:
            return [line for line in f.read().splitlines() if line]

    def restore(self, file: StrictPath) -> None:
        if self.fail_restore:
            raise RegistryError("cannot write registry")
        self.restored.append(file)


@pytest.fixture
def tmp(tmp_path: Path) -> Path:
    """``tmp_path`` with symlinks resolved, so it matches canonical paths."""
    return tmp_path.resolve()


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()
