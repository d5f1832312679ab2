"""Backup layout — where each game, and each of its files, lives in a backup.

Folder tree::

    {backup_root}/
      {game folder}/            escaped game name, or a generated rename
        mapping.yaml            IndividualMapping: game name + drive tokens
        registry.yaml           captured registry keys (Windows only)
        drive-1/...             files from the first drive seen
        drive-2/...

The game folder name is only computed once.  Afterwards the layout finds it
again by reading every ``mapping.yaml`` under the backup root.
"""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Callable

import yaml
from loguru import logger

from savevault.core.strict_path import StrictPath
from savevault.core.walk import MAX_DEPTH, immediate_subdirs, walk_files
from savevault.errors import MappingInvalidError
from savevault.models.scan import ScannedFile
from savevault.utils import SAFE_REPLACEMENT, escape_filename

MAPPING_FILE = "mapping.yaml"
REGISTRY_FILE = "registry.yaml"

RENAME_PREFIX = "savevault-renamed-"
RENAME_FALLBACK = "savevault-renamed-collision"
MAX_RENAME_ATTEMPTS = 1000


# ── Per-game mapping ──


@dataclass
class IndividualMapping:
    """Drive tokens for one game, persisted as ``mapping.yaml``."""

    name: str
    drives: dict[str, str] = field(default_factory=dict)  # token → original drive
    _reversed: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._reversed = {drive: token for token, drive in self.drives.items()}

    def drive_folder_name(self, drive: str) -> str:
        """Token for *drive*, allocating the lowest free ``drive-N`` if new."""
        existing = self._reversed.get(drive)
        if existing is not None:
            return existing

        for n in itertools.count(1):
            token = f"drive-{n}"
            if token not in self.drives:
                break
        self.drives[token] = drive
        self._reversed[drive] = token
        return token

    # ── Persistence ──

    def serialize(self) -> str:
        data = {"name": self.name, "drives": dict(sorted(self.drives.items()))}
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

    def save(self, file: StrictPath) -> None:
        with open(file.interpret(), "w", encoding="utf-8") as f:
            f.write(self.serialize())

    @classmethod
    def load(cls, file: StrictPath) -> IndividualMapping:
        if not file.is_file():
            raise MappingInvalidError(f"Mapping file not found: {file.render()}")
        try:
            with open(file.interpret(), encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise MappingInvalidError(f"Cannot read {file.render()}: {e}") from e
        return cls.load_from_string(content)

    @classmethod
    def load_from_string(cls, content: str) -> IndividualMapping:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MappingInvalidError(f"Malformed mapping: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("name"), str):
            raise MappingInvalidError("Mapping must contain a string 'name'")
        drives = data.get("drives")
        if not isinstance(drives, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in drives.items()
        ):
            raise MappingInvalidError("Mapping 'drives' must map strings to strings")

        return cls(name=data["name"], drives=dict(drives))


# ── Whole-backup index ──


@dataclass
class OverallMappingGame:
    drives: dict[str, str]
    base: StrictPath


@dataclass
class OverallMapping:
    """Index of every game that has a readable mapping under a backup root."""

    games: dict[str, OverallMappingGame] = field(default_factory=dict)

    @classmethod
    def load(cls, base: StrictPath) -> OverallMapping:
        overall = cls()

        for game_dir in immediate_subdirs(base.interpret()):
            mapping_file = game_dir / MAPPING_FILE
            if not mapping_file.is_file():
                continue
            try:
                game = IndividualMapping.load(StrictPath.from_path(mapping_file, base.target_os))
            except MappingInvalidError as e:
                logger.warning(f"Skipping unreadable backup mapping: {e}")
                continue
            overall.games[game.name] = OverallMappingGame(
                drives=dict(game.drives),
                base=StrictPath.from_path(game_dir, base.target_os),
            )

        logger.debug(f"Found {len(overall.games)} backed-up game(s) in {base.render()}")
        return overall


# ── Folder naming ──


class FolderNameKind(StrEnum):
    SAFE = "safe"  # escaped name is usable as-is
    UNREADABLE = "unreadable"  # nothing but replacement characters left
    UNIQUE = "unique"  # generated rename, checked against existing folders
    EXHAUSTED = "exhausted"  # every generated rename collided


@dataclass(frozen=True)
class FolderName:
    kind: FolderNameKind
    value: str = ""


def sanitize_folder_name(name: str) -> FolderName:
    escaped = escape_filename(name)
    if escaped.count(SAFE_REPLACEMENT) == len(escaped):
        return FolderName(FolderNameKind.UNREADABLE)
    return FolderName(FolderNameKind.SAFE, escaped)


def _random_rename() -> str:
    return f"{RENAME_PREFIX}{random.randint(0, 0xFFFF)}"


def generate_unique_folder_name(
    taken: Callable[[str], bool],
    max_attempts: int = MAX_RENAME_ATTEMPTS,
    generate: Callable[[], str] = _random_rename,
) -> FolderName:
    for _ in range(max_attempts):
        candidate = generate()
        if not taken(candidate):
            return FolderName(FolderNameKind.UNIQUE, candidate)
    return FolderName(FolderNameKind.EXHAUSTED, RENAME_FALLBACK)


# ── Layout ──


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


class BackupLayout:
    """Maps game names to backup folders and archived files back to their origin."""

    def __init__(self, base: StrictPath) -> None:
        self.base = base
        self.mapping = OverallMapping.load(base)
        self._assigned: dict[str, StrictPath] = {}

    def game_folder(self, game_name: str) -> StrictPath:
        """Backup folder for *game_name*; stable once assigned."""
        known = self.mapping.games.get(game_name)
        if known is not None:
            return known.base
        if game_name not in self._assigned:
            self._assigned[game_name] = self.base.joined(self._choose_folder_name(game_name))
        return self._assigned[game_name]

    def _choose_folder_name(self, game_name: str) -> str:
        outcome = sanitize_folder_name(game_name)
        if outcome.kind is FolderNameKind.SAFE:
            if not self._claimed(outcome.value):
                return outcome.value
            logger.debug(f"Folder '{outcome.value}' already belongs to another game")

        outcome = generate_unique_folder_name(
            lambda candidate: self._claimed(candidate) or self.base.joined(candidate).exists()
        )
        if outcome.kind is FolderNameKind.EXHAUSTED:
            logger.warning(f"Could not find a free folder name for '{game_name}', using {outcome.value}")
        else:
            logger.debug(f"Renamed backup folder for '{game_name}' to {outcome.value}")
        return outcome.value

    def _claimed(self, folder_name: str) -> bool:
        """Whether *folder_name* is already the folder of some other game."""
        fold = str.casefold if self.base.target_os.case_insensitive else str
        candidate = fold(self.base.joined(folder_name).render())
        owned = itertools.chain(
            (g.base for g in self.mapping.games.values()),
            self._assigned.values(),
        )
        return any(fold(folder.render()) == candidate for folder in owned)

    def game_file(
        self,
        game_folder: StrictPath,
        original_file: StrictPath,
        mapping: IndividualMapping,
    ) -> StrictPath:
        """Archive location of *original_file*: ``<game_folder>/<drive token>/<rest>``."""
        drive, plain_path = original_file.split_drive()
        drive_folder = mapping.drive_folder_name(drive)
        return StrictPath.relative(
            f"{drive_folder}/{plain_path}",
            game_folder.interpret(),
            game_folder.target_os,
        )

    def game_mapping_file(self, game_folder: StrictPath) -> StrictPath:
        return game_folder.joined(MAPPING_FILE)

    def game_registry_file(self, game_folder: StrictPath) -> StrictPath:
        return game_folder.joined(REGISTRY_FILE)

    def restorable_files(self, game_name: str, game_folder: StrictPath) -> set[ScannedFile]:
        """Archived files of *game_name*, each paired with its original location."""
        files: set[ScannedFile] = set()
        game = self.mapping.games.get(game_name)
        if game is None:
            return files

        target_os = game_folder.target_os
        for drive_dir in immediate_subdirs(game_folder.interpret()):
            drive = game.drives.get(drive_dir.name)
            if drive is None:
                logger.debug(f"Ignoring unrecognized folder in backup: {drive_dir}")
                continue

            raw_drive_dir = str(drive_dir)
            for file in walk_files(drive_dir, MAX_DEPTH, follow_links=False):
                raw_file = str(file)
                files.add(
                    ScannedFile(
                        path=StrictPath(raw_file, target_os=target_os),
                        size=_file_size(file),
                        original_path=StrictPath(drive + raw_file[len(raw_drive_dir):], target_os=target_os),
                    )
                )

        return files
