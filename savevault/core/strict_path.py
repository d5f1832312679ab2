"""Strict path wrapper — one canonical form for raw, user-provided paths.

A :class:`StrictPath` keeps the text it was created from (``raw``) and the
directory a relative ``raw`` hangs off (``basis``).  Identity is textual:
two instances compare equal when their ``raw`` and ``basis`` match, even if
they point at the same file on disk.  Everything filesystem-related goes
through :meth:`StrictPath.interpret`.
"""

from __future__ import annotations

import ntpath
import posixpath
import shutil
from dataclasses import dataclass, field, replace
from functools import total_ordering
from pathlib import Path

from savevault.models.platform import Os, current_os

UNC_PREFIX = "\\\\"
UNC_LOCAL_PREFIX = "\\\\?\\"


def home_dir() -> str:
    """Home directory of the current user."""
    return str(Path.home())


def _separators(target_os: Os) -> tuple[str, str]:
    """Return ``(typical, atypical)`` separators for *target_os*."""
    if target_os is Os.WINDOWS:
        return "\\", "/"
    return "/", "\\"


def _flavor(target_os: Os):
    return ntpath if target_os is Os.WINDOWS else posixpath


def _parse_home(path: str) -> str:
    if path == "~" or path.startswith(("~/", "~\\")):
        return home_dir() + path[1:]
    return path


def _normalize(path: str, target_os: Os) -> str:
    typical, atypical = _separators(target_os)
    return _parse_home(path).replace(atypical, typical)


def _is_absolute(path: str, target_os: Os) -> bool:
    if target_os is not Os.WINDOWS:
        return path.startswith("/")
    drive, rest = ntpath.splitdrive(path)
    # A rooted path without a drive ("\foo") is still relative to a drive.
    return bool(drive) and (drive.startswith(UNC_PREFIX) or rest.startswith("\\"))


def _parse_dots(path: str, target_os: Os) -> str:
    """Resolve ``.`` and ``..`` without touching the filesystem."""
    flavor = _flavor(target_os)
    sep = flavor.sep
    drive, rest = flavor.splitdrive(path)
    root = sep if rest.startswith(sep) else ""

    parts: list[str] = []
    for part in rest.split(sep):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)

    return drive + root + sep.join(parts)


def _with_long_path_prefix(path: str, target_os: Os) -> str:
    if target_os is not Os.WINDOWS or path.startswith(UNC_PREFIX):
        # Already verbatim, or a remote share whose server must stay visible.
        return path
    return UNC_LOCAL_PREFIX + path


def render(interpreted: str) -> str:
    """Strip the long-path marker and force forward slashes."""
    return interpreted.replace(UNC_LOCAL_PREFIX, "").replace("\\", "/")


@total_ordering
@dataclass(frozen=True)
class StrictPath:
    """Immutable path reference with explicit conversion points.

    ``target_os`` selects whose path syntax applies; it is not part of the
    identity of the path.
    """

    raw: str = ""
    basis: str | None = None
    target_os: Os = field(default_factory=current_os, compare=False, repr=False)

    # ── Construction ──

    @classmethod
    def relative(cls, raw: str, basis: str | None, target_os: Os | None = None) -> StrictPath:
        if target_os is None:
            return cls(raw, basis)
        return cls(raw, basis, target_os)

    @classmethod
    def from_path(cls, path: str | Path, target_os: Os | None = None) -> StrictPath:
        if target_os is None:
            return cls(str(path))
        return cls(str(path), target_os=target_os)

    def reset(self, raw: str) -> StrictPath:
        """Return a copy whose raw text is replaced by *raw*."""
        return replace(self, raw=raw)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, StrictPath):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def _sort_key(self) -> tuple[str, bool, str]:
        return (self.raw, self.basis is not None, self.basis or "")

    # ── Representations ──

    def _basis_dir(self) -> str:
        if self.basis is None:
            return str(Path.cwd())
        typical, atypical = _separators(self.target_os)
        return self.basis.replace(atypical, typical)

    def interpret(self) -> str:
        """Absolute form suitable for filesystem calls.

        On Windows this carries the ``\\\\?\\`` long-path prefix.
        """
        typical, atypical = _separators(self.target_os)
        normalized = _normalize(self.raw, self.target_os)
        if _is_absolute(normalized, self.target_os):
            absolutized = normalized
        else:
            absolutized = _flavor(self.target_os).join(self._basis_dir(), normalized)

        if self.target_os is current_os():
            try:
                resolved = str(Path(absolutized).resolve(strict=True))
            except (OSError, RuntimeError):
                pass
            else:
                return _with_long_path_prefix(resolved, self.target_os)

        dedotted = _parse_dots(absolutized, self.target_os)
        return _with_long_path_prefix(dedotted, self.target_os).replace(atypical, typical)

    def render(self) -> str:
        """Display and storage form: no long-path prefix, forward slashes."""
        return render(self.interpret())

    def as_path(self) -> Path:
        return Path(self.interpret())

    def split_drive(self) -> tuple[str, str]:
        """Split into ``(drive, remainder)``.

        ``"\\\\?\\C:\\foo\\bar"`` → ``("C:", "foo/bar")``,
        ``"\\\\remote\\foo\\bar"`` → ``("\\\\remote", "foo/bar")``,
        ``"/foo/bar"`` → ``("", "foo/bar")``.
        """
        if self.target_os is not Os.WINDOWS:
            return "", self.raw[1:] if self.raw.startswith("/") else self.raw

        interpreted = self.interpret()
        if interpreted.startswith(UNC_LOCAL_PREFIX):
            drive, sep, rest = interpreted[len(UNC_LOCAL_PREFIX):].partition("\\")
            if sep:
                return drive, rest.replace("\\", "/")
        elif interpreted.startswith(UNC_PREFIX):
            server, sep, rest = interpreted[len(UNC_PREFIX):].partition("\\")
            if sep:
                return UNC_PREFIX + server, rest.replace("\\", "/")

        return "", self.raw.replace("\\", "/")

    # ── Filesystem ──

    def is_file(self) -> bool:
        return self.as_path().is_file()

    def is_dir(self) -> bool:
        return self.as_path().is_dir()

    def exists(self) -> bool:
        return self.is_file() or self.is_dir()

    def remove(self) -> None:
        """Delete the file or directory tree; nothing happens if it is absent."""
        if self.is_file():
            self.as_path().unlink()
        elif self.is_dir():
            shutil.rmtree(self.interpret())

    def joined(self, other: str) -> StrictPath:
        return replace(self, raw=f"{self.interpret()}/{other}", basis=None)

    def create_parent_dir(self) -> None:
        self.as_path().parent.mkdir(parents=True, exist_ok=True)
