"""Filesystem helpers for gitlab-review."""

from __future__ import annotations

import shutil
from pathlib import Path


def move_dir(src: Path, dst: Path) -> None:
    """Move ``src`` to exactly ``dst``.

    ``shutil.move`` nests the source inside an existing destination directory,
    so an occupied destination is refused instead. Moves across filesystems
    fall back to copy-and-delete.
    """

    if dst.exists() or dst.is_symlink():
        raise FileExistsError(f"Destination already exists: {dst}")
    ensure_directory(dst.parent)
    shutil.move(str(src), str(dst))


def is_empty_dir(path: Path) -> bool:
    return path.is_dir() and not any(path.iterdir())


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
