"""Filesystem helpers for the working tree."""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path

__all__ = ["clear_directory", "copy_tree_into", "list_files", "reset_directory"]


def reset_directory(path: Path) -> None:
    """Remove path if present and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def clear_directory(path: Path, *, keep: Iterable[str] = ()) -> int:
    """Delete every entry directly under path except the names in keep.

    Returns:
        Number of top-level entries removed
    """
    kept = set(keep)
    removed = 0
    for entry in path.iterdir():
        if entry.name in kept:
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    return removed


def copy_tree_into(src: Path, dest: Path, *, exclude: Iterable[str] = ()) -> int:
    """Copy the contents of src into an existing directory dest.

    Entries named in exclude are not copied, at any depth.

    Returns:
        Number of files copied
    """
    count = 0
    for file in list_files(src, exclude=exclude):
        rel = file.relative_to(src)
        target = dest / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(file, target)
        count += 1
    return count


def list_files(root: Path, *, exclude: Iterable[str] = ()) -> list[Path]:
    """Sorted regular files under root, skipping anything under an excluded name."""
    excluded = set(exclude)
    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        if excluded.intersection(path.relative_to(root).parts):
            continue
        if path.is_file():
            files.append(path)
    return files
