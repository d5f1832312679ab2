"""Restore manager — copy archived files back to where they came from."""

from __future__ import annotations

import shutil
import time
from typing import Callable

from loguru import logger

from savevault.core.registry import RegistryProvider, registry_available
from savevault.core.strict_path import StrictPath
from savevault.errors import RegistryError
from savevault.models.locations import RedirectConfig
from savevault.models.platform import Os, current_os
from savevault.models.scan import BackupInfo, ScanInfo

MAX_COPY_ATTEMPTS = 99


def game_file_restoration_target(
    original_target: StrictPath,
    redirects: list[RedirectConfig],
) -> tuple[StrictPath, StrictPath | None]:
    """
    Apply *redirects* to *original_target*.

    Returns the effective target, and the original target when a redirect
    changed it (``None`` otherwise).
    """
    redirected = original_target.render()
    for redirect in redirects:
        if not redirect.source.raw.strip() or not redirect.target.raw.strip():
            continue
        source = redirect.source.render()
        if redirected.startswith(source):
            redirected = redirect.target.render() + redirected[len(source):]

    redirected_target = StrictPath(redirected, target_os=original_target.target_os)
    if original_target.render() != redirected_target.render():
        return redirected_target, original_target
    return original_target, None


class RestoreManager:
    """Restores the files (and registry data) listed by a restoration scan."""

    def __init__(
        self,
        registry: RegistryProvider | None = None,
        target_os: Os | None = None,
        max_attempts: int = MAX_COPY_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._registry = registry
        self._os = target_os or current_os()
        self._max_attempts = max_attempts
        self._sleep = sleep

    def restore_game(self, info: ScanInfo, redirects: list[RedirectConfig]) -> BackupInfo:
        result = BackupInfo()

        for file in sorted(info.found_files, key=lambda f: f.path):
            if file.original_path is None:
                continue
            target, _ = game_file_restoration_target(file.original_path, redirects)

            try:
                target.create_parent_dir()
            except OSError as e:
                logger.error(f"Cannot create folder for {target.render()}: {e}")
                result.failed_files.add(file)
                continue

            if not self._copy_with_retry(file.path, target, info.game_name):
                result.failed_files.add(file)

        if info.registry_file is not None and registry_available(self._registry, self._os):
            try:
                self._registry.restore(info.registry_file)
            except RegistryError as e:
                logger.error(f"Failed to restore registry for {info.game_name}: {e}")
                result.failed_registry.update(info.found_registry_keys)

        logger.info(
            f"Restored {info.game_name}: {len(info.found_files) - len(result.failed_files)} file(s), "
            f"{len(result.failed_files) + len(result.failed_registry)} failure(s)"
        )
        return result

    def _copy_with_retry(self, source: StrictPath, target: StrictPath, game_name: str) -> bool:
        last_error: OSError | None = None
        for attempt in range(self._max_attempts):
            try:
                shutil.copy2(source.interpret(), target.interpret())
                return True
            except OSError as e:
                last_error = e
            if attempt + 1 < self._max_attempts:
                # The file may be busy, e.g. when several games in a collection share it.
                self._sleep(attempt * len(game_name) / 1000)
        logger.error(f"Failed to restore {target.render()}: {last_error}")
        return False
