"""Platform and store identifiers."""

from __future__ import annotations

import sys
from enum import StrEnum


class Os(StrEnum):
    """Operating system whose path conventions apply."""

    WINDOWS = "windows"
    MAC = "mac"
    LINUX = "linux"
    OTHER = "other"

    @property
    def case_insensitive(self) -> bool:
        """Whether the native filesystem ignores case."""
        return self in (Os.WINDOWS, Os.MAC)


class Store(StrEnum):
    """Distribution platform a root belongs to."""

    STEAM = "steam"
    OTHER = "other"


def current_os() -> Os:
    """Return the Os value for the running interpreter."""
    if sys.platform.startswith("linux"):
        return Os.LINUX
    if sys.platform == "win32":
        return Os.WINDOWS
    if sys.platform == "darwin":
        return Os.MAC
    return Os.OTHER
