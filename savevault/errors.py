"""Exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from savevault.core.strict_path import StrictPath


class SaveVaultError(Exception):
    """Base class for all errors raised by savevault."""


class ConfigInvalidError(SaveVaultError):
    def __init__(self, why: str) -> None:
        super().__init__(f"The config file is invalid: {why}")
        self.why = why


class ManifestInvalidError(SaveVaultError):
    def __init__(self, why: str) -> None:
        super().__init__(f"The manifest file is invalid: {why}")
        self.why = why


class MappingInvalidError(SaveVaultError):
    """A per-game mapping file is absent or cannot be parsed."""


class CannotPrepareBackupTargetError(SaveVaultError):
    def __init__(self, path: StrictPath) -> None:
        super().__init__(f"Cannot prepare the backup target: {path.render()}")
        self.path = path


class RestorationSourceInvalidError(SaveVaultError):
    def __init__(self, path: StrictPath) -> None:
        super().__init__(f"The restoration source is invalid: {path.render()}")
        self.path = path


class RegistryError(SaveVaultError):
    """Error while working with the registry."""


class SomeEntriesFailedError(SaveVaultError):
    def __init__(self, games: list[str]) -> None:
        super().__init__(f"Some entries failed: {', '.join(games)}")
        self.games = games
