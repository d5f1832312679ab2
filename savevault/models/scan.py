"""Scan and backup result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from savevault.core.strict_path import StrictPath


@dataclass(frozen=True)
class ScannedFile:
    """One discovered file.  Equal files are interchangeable in a set."""

    path: StrictPath
    size: int
    original_path: StrictPath | None = None  # Restoration target, before redirects


@dataclass
class ScanInfo:
    """Everything found for one game by a single scan."""

    game_name: str
    found_files: set[ScannedFile] = field(default_factory=set)
    found_registry_keys: set[str] = field(default_factory=set)
    registry_file: StrictPath | None = None

    def found_anything(self) -> bool:
        return bool(self.found_files) or bool(self.found_registry_keys)

    def sum_bytes(self, backup_info: BackupInfo | None = None) -> int:
        """Total bytes found, minus the bytes of files that failed."""
        total = sum(f.size for f in self.found_files)
        if backup_info is not None:
            total -= sum(f.size for f in backup_info.failed_files)
        return total


@dataclass
class BackupInfo:
    """Failures from one backup or restore of a game.  Empty means success."""

    failed_files: set[ScannedFile] = field(default_factory=set)
    failed_registry: set[str] = field(default_factory=set)

    def successful(self) -> bool:
        return not self.failed_files and not self.failed_registry


class OperationStepDecision(StrEnum):
    PROCESSED = "processed"
    CANCELLED = "cancelled"
    IGNORED = "ignored"


@dataclass
class OperationStatus:
    """Running totals across all games of one backup or restore operation."""

    total_games: int = 0
    total_bytes: int = 0
    processed_games: int = 0
    processed_bytes: int = 0

    def clear(self) -> None:
        self.total_games = 0
        self.total_bytes = 0
        self.processed_games = 0
        self.processed_bytes = 0

    def add_game(
        self,
        scan_info: ScanInfo,
        backup_info: BackupInfo | None,
        processed: bool,
    ) -> None:
        self.total_games += 1
        self.total_bytes += scan_info.sum_bytes()
        if processed:
            self.processed_games += 1
            self.processed_bytes += scan_info.sum_bytes(backup_info)

    def completed(self) -> bool:
        return (
            self.total_games == self.processed_games
            and self.total_bytes == self.processed_bytes
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalGames": self.total_games,
            "totalBytes": self.total_bytes,
            "processedGames": self.processed_games,
            "processedBytes": self.processed_bytes,
        }
