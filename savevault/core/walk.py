"""Bounded-depth file enumeration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

MAX_DEPTH = 100


def walk_files(
    root: str | Path,
    max_depth: int = MAX_DEPTH,
    follow_links: bool = False,
) -> Iterator[Path]:
    """
    Yield every regular file below *root*, at most *max_depth* levels deep.

    The depth bound also stops runaway recursion through symlink loops
    when ``follow_links`` is enabled.  Unreadable directories are skipped.
    """
    root = Path(root)
    base_depth = len(root.parts)

    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_links):
        depth = len(Path(dirpath).parts) - base_depth
        if depth >= max_depth - 1:
            dirnames.clear()
        for name in filenames:
            child = Path(dirpath) / name
            if not follow_links and child.is_symlink():
                continue
            if child.is_file():
                yield child


def immediate_subdirs(root: str | Path) -> list[Path]:
    """Direct child directories of *root*, symlinks excluded, sorted by name."""
    try:
        with os.scandir(root) as entries:
            dirs = [Path(e.path) for e in entries if e.is_dir(follow_symlinks=False)]
    except OSError:
        return []
    return sorted(dirs)


def walk_dirs(root: str | Path, max_depth: int = MAX_DEPTH) -> Iterator[Path]:
    """Yield *root* and every directory below it, at most *max_depth* levels deep.

    Symlinked directories are not entered.
    """
    root = Path(root)
    if not root.is_dir():
        return
    base_depth = len(root.parts)

    for dirpath, dirnames, _ in os.walk(root):
        depth = len(Path(dirpath).parts) - base_depth
        if depth >= max_depth - 1:
            dirnames.clear()
        dirnames.sort()
        yield Path(dirpath)
