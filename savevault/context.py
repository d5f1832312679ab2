"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from savevault.config import Config
    from savevault.core.backup import BackupManager
    from savevault.core.restore import RestoreManager
    from savevault.core.scanner import Scanner


@dataclass
class AppContext:
    """Central service container handed to the command handlers."""

    config: Config
    scanner: Scanner
    backup_manager: BackupManager
    restore_manager: RestoreManager
