"""Filesystem capability used by the injection engine.

Every read, write and removal the engine performs goes through a
``FileSystem`` instance, so tests can substitute failures at one seam.
Errors propagate as ``OSError``; callers decide whether they are fatal.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".btw-backup"


@dataclass(frozen=True)
class FileInfo:
    """One directory entry."""

    name: str
    path: Path
    is_dir: bool
    is_file: bool
    size: int


class FileSystem:
    """Thin UTF-8 filesystem layer over pathlib."""

    def exists(self, path: Path | str) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path | str) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: Path | str) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(
        self, path: Path | str, content: str, create_dirs: bool = False,
    ) -> None:
        target = Path(path)
        if create_dirs:
            target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def mkdir(self, path: Path | str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def remove(self, path: Path | str, recursive: bool = False) -> None:
        """Remove a file or directory. Missing paths are ignored."""
        target = Path(path)
        if target.is_dir() and not target.is_symlink():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        elif target.exists() or target.is_symlink():
            target.unlink()

    def listdir(self, path: Path | str) -> list[FileInfo]:
        """List a directory sorted by name.

        Raises:
            FileNotFoundError: If the directory doesn't exist.
        """
        entries = []
        for child in sorted(Path(path).iterdir()):
            is_file = child.is_file()
            entries.append(FileInfo(
                name=child.name,
                path=child,
                is_dir=child.is_dir(),
                is_file=is_file,
                size=child.stat().st_size if is_file else 0,
            ))
        return entries

    def backup(self, path: Path | str) -> Path:
        """Copy ``path`` to its ``.btw-backup`` sibling and return the copy."""
        source = Path(path)
        backup_path = source.with_name(source.name + BACKUP_SUFFIX)
        shutil.copy2(source, backup_path)
        logger.debug("Backed up %s -> %s", source, backup_path)
        return backup_path

    def restore(self, path: Path | str) -> None:
        """Copy the ``.btw-backup`` sibling back over ``path`` and delete it."""
        target = Path(path)
        backup_path = target.with_name(target.name + BACKUP_SUFFIX)
        shutil.copy2(backup_path, target)
        backup_path.unlink()
        logger.debug("Restored %s from %s", target, backup_path)


def backup_path_for(path: Path | str) -> Path:
    """Path of the backup sibling for ``path``."""
    p = Path(path)
    return p.with_name(p.name + BACKUP_SUFFIX)


def is_backup(name: str) -> bool:
    return name.endswith(BACKUP_SUFFIX)
