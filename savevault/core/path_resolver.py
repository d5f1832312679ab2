"""Path template resolver — expand manifest placeholders, then glob.

Templates look like ``<winAppData>/Studio/<game>/*.sav``.  Each placeholder
is replaced with a concrete directory for the target OS.  Placeholders that
make no sense on that OS become ``<skip>``, and any candidate still holding
``<skip>`` is dropped before it reaches the filesystem.
"""

from __future__ import annotations

import fnmatch
import getpass
import os
import platform
import re
from pathlib import Path
from typing import Callable

from savevault.core.strict_path import StrictPath, home_dir
from savevault.core.walk import MAX_DEPTH, walk_dirs
from savevault.models.locations import RootsConfig
from savevault.models.platform import Os, Store

SKIP = "<skip>"

# Placeholders whose value depends only on the target OS
_OS_DIRECTORY_TOKENS = (
    "<winAppData>",
    "<winLocalAppData>",
    "<winDocuments>",
    "<winPublic>",
    "<winProgramData>",
    "<winDir>",
    "<xdgData>",
    "<xdgConfig>",
    "<regHkcu>",
    "<regHklm>",
)

_MAGIC = re.compile(r"[*?[]")
RECURSIVE_WILDCARD = "**"


def _get_documents_path() -> str:
    """Get the real Documents path (handles relocated folders on Windows)."""
    if platform.system() == "Windows":
        try:
            import ctypes.wintypes

            buf = ctypes.create_unicode_buffer(ctypes.wintypes.MAX_PATH)
            # CSIDL_PERSONAL = 0x0005
            ctypes.windll.shell32.SHGetFolderPathW(None, 0x0005, None, 0, buf)  # type: ignore[union-attr]
            if buf.value:
                return buf.value
        except (ImportError, AttributeError, OSError):
            pass
    return str(Path.home() / "Documents")


def _env_dir(variable: str, *fallback: str) -> str:
    return os.environ.get(variable) or str(Path.home().joinpath(*fallback))


_XDG_TABLE: dict[str, Callable[[], str]] = {
    "<xdgData>": lambda: _env_dir("XDG_DATA_HOME", ".local", "share"),
    "<xdgConfig>": lambda: _env_dir("XDG_CONFIG_HOME", ".config"),
}

_HOST_TABLE: dict[Os, dict[str, Callable[[], str]]] = {
    Os.WINDOWS: {
        "<winAppData>": lambda: _env_dir("APPDATA", "AppData", "Roaming"),
        "<winLocalAppData>": lambda: _env_dir("LOCALAPPDATA", "AppData", "Local"),
        "<winDocuments>": _get_documents_path,
        "<winPublic>": lambda: os.environ.get("PUBLIC") or "C:/Users/Public",
        "<winProgramData>": lambda: "C:/Windows/ProgramData",
        "<winDir>": lambda: "C:/Windows",
    },
    Os.MAC: {
        "<xdgData>": lambda: str(Path.home() / "Library" / "Application Support"),
        "<xdgConfig>": lambda: str(Path.home() / "Library" / "Application Support"),
    },
    Os.LINUX: _XDG_TABLE,
    Os.OTHER: _XDG_TABLE,
}


def os_directory_placeholders(target_os: Os) -> dict[str, str]:
    """Values for the OS-specific placeholders; unsupported ones are ``<skip>``."""
    values = {token: SKIP for token in _OS_DIRECTORY_TOKENS}
    for token, resolve in _HOST_TABLE[target_os].items():
        values[token] = resolve() or SKIP
    return values


# Folders under users/steamuser in a Proton prefix
_PROTON_USER_DIRS = {
    "<winAppData>": "AppData/Roaming",
    "<winLocalAppData>": "AppData/Local",
    "<winDocuments>": "Documents",
}
_PROTON_LEGACY_USER_DIRS = {
    "<winAppData>": "Application Data",
    "<winLocalAppData>": "Application Data",
    "<winDocuments>": "My Documents",
}


def proton_placeholders(prefix: str, target_os: Os, legacy: bool = False) -> dict[str, str]:
    """Values inside a Proton prefix (``.../pfx/drive_c``) for a Steam title.

    Older prefixes use the Windows XP folder names, selected with *legacy*.
    """
    user = f"{prefix}/users/steamuser"
    values = os_directory_placeholders(target_os)
    user_dirs = _PROTON_LEGACY_USER_DIRS if legacy else _PROTON_USER_DIRS
    values.update({token: f"{user}/{folder}" for token, folder in user_dirs.items()})
    values.update(
        {
            "<winPublic>": f"{prefix}/users/Public",
            "<winProgramData>": f"{prefix}/ProgramData",
            "<winDir>": f"{prefix}/windows",
        }
    )
    return values


def _os_username() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return SKIP


def _substitute(template: str, values: dict[str, str]) -> str:
    for token, value in values.items():
        template = template.replace(token, value)
    return template


def parse_paths(
    path: str,
    root: RootsConfig,
    install_dirs: list[str],
    steam_id: int | None,
    manifest_dir: StrictPath,
    target_os: Os | None = None,
) -> set[StrictPath]:
    """Expand *path* into concrete candidates, one per install dir (plus Proton)."""
    if target_os is None:
        target_os = manifest_dir.target_os
    root_path = root.path.interpret()
    steam = root.store is Store.STEAM
    candidates: set[str] = set()

    for install_dir in install_dirs:
        candidates.add(
            _substitute(
                path,
                {
                    "<root>": root_path,
                    "<game>": install_dir,
                    "<base>": (
                        f"{root_path}/steamapps/common/{install_dir}"
                        if steam
                        else f"{root_path}/{install_dir}"
                    ),
                    "<home>": home_dir() or SKIP,
                    "<storeUserId>": "[0-9]*" if steam else "*",
                    "<osUserName>": _os_username(),
                    **os_directory_placeholders(target_os),
                },
            )
        )

        if target_os is Os.LINUX and steam and steam_id is not None:
            prefix = f"{root_path}/steamapps/compatdata/{steam_id}/pfx/drive_c"
            for legacy in (False, True):
                candidates.add(
                    _substitute(
                        path,
                        {
                            "<root>": root_path,
                            "<game>": install_dir,
                            "<base>": f"{root_path}/steamapps/common/{install_dir}",
                            "<home>": f"{prefix}/users/steamuser",
                            "<storeUserId>": "*",
                            "<osUserName>": "steamuser",
                            **proton_placeholders(prefix, target_os, legacy),
                        },
                    )
                )

    return {
        StrictPath.relative(candidate, manifest_dir.interpret(), target_os)
        for candidate in candidates
    }


# ── Glob ──


def _split_pattern(pattern: str) -> tuple[str, list[str]]:
    """Split a rendered pattern into a literal anchor and its segments."""
    if pattern.startswith("//"):
        parts = pattern[2:].split("/")
        anchor = "//" + "/".join(parts[:2]) + "/"
        rest = parts[2:]
    elif re.match(r"^[A-Za-z]:/", pattern):
        anchor, rest = pattern[:3], pattern[3:].split("/")
    elif pattern.startswith("/"):
        anchor, rest = "/", pattern[1:].split("/")
    else:
        anchor, rest = "", pattern.split("/")
    return anchor, [segment for segment in rest if segment]


def _reslashed(path: str) -> str:
    return path.replace("\\", "/")


def _join(parent: str, name: str) -> str:
    if not parent or parent.endswith("/"):
        return parent + name
    return f"{parent}/{name}"


def _match_segment(parent: str, segment: str, case_sensitive: bool) -> list[str]:
    if segment == RECURSIVE_WILDCARD:
        # The parent itself plus every directory below it
        return [_reslashed(str(d)) for d in walk_dirs(parent or ".", MAX_DEPTH)]

    if case_sensitive and not _MAGIC.search(segment):
        candidate = _join(parent, segment)
        return [candidate] if os.path.exists(candidate) else []

    regex = re.compile(fnmatch.translate(segment), 0 if case_sensitive else re.IGNORECASE)
    try:
        names = os.listdir(parent or ".")
    except OSError:
        return []
    return [_join(parent, name) for name in sorted(names) if regex.match(name)]


def glob_any(path: StrictPath) -> list[str]:
    """
    Expand the wildcards in *path*.

    ``*``, ``?`` and ``[...]`` match within one path segment only.  A segment
    that is exactly ``**`` matches zero or more directories, down to
    ``MAX_DEPTH``.  A leading dot needs no literal match, and matching
    ignores case only where the target OS's filesystem does.
    """
    anchor, segments = _split_pattern(path.render())
    case_sensitive = not path.target_os.case_insensitive

    matches = [anchor]
    for segment in segments:
        matches = list(
            dict.fromkeys(
                found
                for parent in matches
                for found in _match_segment(parent, segment, case_sensitive)
            )
        )
        if not matches:
            break
    return sorted(set(matches))
