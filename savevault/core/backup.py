"""Backup manager — copy a game's scanned files into the backup layout."""

from __future__ import annotations

import shutil
from typing import TYPE_CHECKING

from loguru import logger

from savevault.core.layout import BackupLayout, IndividualMapping
from savevault.core.registry import RegistryProvider, registry_available
from savevault.errors import CannotPrepareBackupTargetError, RegistryError
from savevault.models.platform import Os, current_os
from savevault.models.scan import BackupInfo, ScanInfo

if TYPE_CHECKING:
    from savevault.core.strict_path import StrictPath


class BackupManager:
    """
    Writes backups.

    Each run replaces the game's folder wholesale and writes a fresh
    ``mapping.yaml``; nothing from an earlier backup of the game is kept.
    """

    def __init__(
        self,
        registry: RegistryProvider | None = None,
        target_os: Os | None = None,
    ) -> None:
        self._registry = registry
        self._os = target_os or current_os()

    @staticmethod
    def prepare_backup_target(target: StrictPath, merge: bool) -> None:
        """
        Make *target* ready to receive game folders.

        Without *merge*, anything already there is deleted first.  With it,
        an existing target is kept but must be a directory.
        """
        if merge and target.exists() and not target.is_dir():
            raise CannotPrepareBackupTargetError(target)
        try:
            if not merge:
                target.remove()
            target.as_path().mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot prepare backup target {target.render()}: {e}")
            raise CannotPrepareBackupTargetError(target) from e

    def back_up_game(self, info: ScanInfo, name: str, layout: BackupLayout) -> BackupInfo:
        result = BackupInfo()
        target_game = layout.game_folder(name)
        # The folder is wiped below, so the old mapping is never needed.
        mapping = IndividualMapping(name)

        unable_to_prepare = False
        if info.found_anything():
            try:
                target_game.remove()
                target_game.as_path().mkdir(parents=True)
            except OSError as e:
                logger.error(f"Cannot prepare backup folder {target_game.render()}: {e}")
                unable_to_prepare = True

        for file in sorted(info.found_files, key=lambda f: f.path):
            if unable_to_prepare:
                result.failed_files.add(file)
                continue

            target_file = layout.game_file(target_game, file.path, mapping)
            try:
                target_file.create_parent_dir()
                shutil.copy2(file.path.interpret(), target_file.interpret())
            except OSError as e:
                logger.error(f"Failed to back up {file.path.render()}: {e}")
                result.failed_files.add(file)

        self._back_up_registry(info, layout, target_game, unable_to_prepare, result)

        if info.found_anything() and not unable_to_prepare:
            mapping.save(layout.game_mapping_file(target_game))

        logger.info(
            f"Backed up {name}: {len(info.found_files) - len(result.failed_files)} file(s), "
            f"{len(result.failed_files) + len(result.failed_registry)} failure(s)"
        )
        return result

    def _back_up_registry(
        self,
        info: ScanInfo,
        layout: BackupLayout,
        target_game: StrictPath,
        unable_to_prepare: bool,
        result: BackupInfo,
    ) -> None:
        if not info.found_registry_keys or not registry_available(self._registry, self._os):
            return

        stored_any = False
        for reg_path in sorted(info.found_registry_keys):
            if unable_to_prepare:
                result.failed_registry.add(reg_path)
                continue
            try:
                key_info = self._registry.store_key(reg_path)
            except RegistryError as e:
                logger.error(f"Failed to back up registry key {reg_path}: {e}")
                result.failed_registry.add(reg_path)
                continue
            if not key_info.found:
                logger.warning(f"Registry key disappeared since the scan: {reg_path}")
                result.failed_registry.add(reg_path)
                continue
            stored_any = True

        if stored_any:
            self._registry.save(layout.game_registry_file(target_game))
        else:
            self._registry.reset()
