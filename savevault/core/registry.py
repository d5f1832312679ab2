"""Registry collaborator interface.

Only Windows has a registry.  The core never touches it directly: it asks a
:class:`RegistryProvider` to capture keys, persist what was captured, and put
it back on restore.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from savevault.models.platform import Os

if TYPE_CHECKING:
    from savevault.core.strict_path import StrictPath


@dataclass(frozen=True)
class RegistryKeyInfo:
    found: bool


class RegistryProvider(Protocol):
    """Capture / persist / restore registry keys."""

    def store_key(self, full_path: str) -> RegistryKeyInfo:
        """Capture *full_path* and everything under it.

        Raises :class:`~savevault.errors.RegistryError` on I/O failure.
        """
        ...

    def save(self, file: StrictPath) -> None:
        """Write all captured keys to *file*, then start a fresh capture."""
        ...

    def reset(self) -> None:
        """Discard everything captured so far."""
        ...

    def load(self, file: StrictPath) -> list[str] | None:
        """Read *file* and return the key paths it holds, or None if unusable."""
        ...

    def restore(self, file: StrictPath) -> None:
        """Write the keys held in *file* back into the registry."""
        ...


def registry_available(provider: RegistryProvider | None, target_os: Os) -> bool:
    """Whether registry work applies: a provider exists and the OS has a registry."""
    return provider is not None and target_os is Os.WINDOWS
