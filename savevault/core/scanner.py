"""Save scanner — find a game's files for backup, or its archived files for restore."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from loguru import logger

from savevault.core.path_resolver import SKIP, glob_any, parse_paths
from savevault.core.registry import RegistryProvider, registry_available
from savevault.core.strict_path import StrictPath
from savevault.core.walk import MAX_DEPTH, walk_files
from savevault.errors import RegistryError
from savevault.models.locations import RootsConfig
from savevault.models.platform import Os, Store, current_os
from savevault.models.scan import ScanInfo, ScannedFile

if TYPE_CHECKING:
    from savevault.core.layout import BackupLayout
    from savevault.models.game import Game


def _reslashed(path: str) -> str:
    return path.replace("\\", "/")


class Scanner:
    """
    Discovery half of backup and restore.

    Backup scans expand the game's path templates against every root;
    restoration scans read what the backup layout holds for the game.
    Registry keys are delegated to the optional *registry* provider.
    """

    def __init__(
        self,
        registry: RegistryProvider | None = None,
        target_os: Os | None = None,
    ) -> None:
        self._registry = registry
        self._os = target_os or current_os()

    # ── Backup ──

    def scan_game_for_backup(
        self,
        game: Game,
        name: str,
        roots: list[RootsConfig],
        manifest_dir: StrictPath,
        steam_id: int | None = None,
    ) -> ScanInfo:
        if steam_id is None:
            steam_id = game.steam_id

        # Dummy root so that templates without <root> are still checked.
        roots_to_check = [RootsConfig(StrictPath(SKIP, target_os=self._os), Store.OTHER), *roots]
        paths_to_check: set[StrictPath] = set()

        for root in roots_to_check:
            if not root.path.raw.strip():
                continue
            if game.files:
                install_dirs = list(game.install_dir) if game.install_dir else [name]
                for raw_path in game.files:
                    if not raw_path.strip():
                        continue
                    for candidate in parse_paths(
                        raw_path, root, install_dirs, steam_id, manifest_dir, self._os
                    ):
                        if SKIP in candidate.raw:
                            continue
                        paths_to_check.add(candidate)
            if root.store is Store.STEAM and steam_id is not None:
                paths_to_check.update(self._steam_paths(game, root, steam_id, manifest_dir))

        found_files: set[ScannedFile] = set()
        for path in sorted(paths_to_check):
            for match in glob_any(path):
                found_files.update(self._collect(match))

        info = ScanInfo(
            game_name=name,
            found_files=found_files,
            found_registry_keys=self._scan_registry(game),
        )
        logger.debug(
            f"{name}: found {len(info.found_files)} file(s), "
            f"{len(info.found_registry_keys)} registry key(s)"
        )
        return info

    def _steam_paths(
        self,
        game: Game,
        root: RootsConfig,
        steam_id: int,
        manifest_dir: StrictPath,
    ) -> list[StrictPath]:
        root_path = root.path.interpret()
        raw_paths = [
            # Cloud saves
            f"{root_path}/userdata/*/{steam_id}/remote/",
            # Screenshots
            f"{root_path}/userdata/*/760/remote/{steam_id}/screenshots/*.*",
        ]
        if game.registry:
            # Registry exported by Proton
            raw_paths.append(f"{root_path}/steamapps/compatdata/{steam_id}/pfx/*.reg")
        return [StrictPath.relative(p, manifest_dir.interpret(), self._os) for p in raw_paths]

    def _collect(self, match: str) -> Iterator[ScannedFile]:
        path = Path(match)
        if path.is_file():
            yield self._scanned(path)
        elif path.is_dir():
            for child in walk_files(path, MAX_DEPTH, follow_links=True):
                yield self._scanned(child)

    def _scanned(self, path: Path) -> ScannedFile:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return ScannedFile(
            path=StrictPath(_reslashed(str(path)), target_os=self._os),
            size=size,
        )

    def _scan_registry(self, game: Game) -> set[str]:
        found: set[str] = set()
        if not game.registry or not registry_available(self._registry, self._os):
            return found

        for key in game.registry:
            if not key.strip():
                continue
            try:
                if self._registry.store_key(key).found:
                    found.add(key)
            except RegistryError as e:
                logger.warning(f"Cannot read registry key {key}: {e}")
        self._registry.reset()
        return found

    # ── Restore ──

    def scan_game_for_restoration(self, name: str, layout: BackupLayout) -> ScanInfo:
        info = ScanInfo(game_name=name)

        target_game = layout.game_folder(name)
        if target_game.is_dir():
            info.found_files = layout.restorable_files(name, target_game)

        if registry_available(self._registry, self._os):
            registry_file = layout.game_registry_file(target_game)
            keys = self._registry.load(registry_file) if registry_file.is_file() else None
            if keys is not None:
                info.registry_file = registry_file
                info.found_registry_keys = {_reslashed(key) for key in keys}

        logger.debug(f"{name}: {len(info.found_files)} restorable file(s)")
        return info
