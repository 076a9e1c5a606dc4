"""Filesystem access used by the cache.

Every OS-level failure surfaces as IOFailureError so callers deal with a
single error taxonomy.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import IOFailureError


@dataclass(frozen=True)
class FileEntry:
    """A regular file (or anything that is not a directory) in a listing."""

    name: str


@dataclass(frozen=True)
class DirectoryEntry:
    """A directory in a listing."""

    name: str
    is_symlink: bool = False


Entry = Union[FileEntry, DirectoryEntry]


class FileSystem:
    """Thin wrapper over os/shutil with uniform error handling."""

    @property
    def home_directory(self) -> Path:
        return Path.home()

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def list(self, path: Path) -> list[Entry]:
        """List immediate entries of a directory.

        Symlinks to directories are reported as directories with
        ``is_symlink`` set, so callers decide whether to follow them.
        """
        try:
            entries: list[Entry] = []
            with os.scandir(path) as it:
                for entry in it:
                    if entry.is_dir(follow_symlinks=True):
                        entries.append(
                            DirectoryEntry(entry.name, is_symlink=entry.is_symlink())
                        )
                    else:
                        entries.append(FileEntry(entry.name))
            return entries
        except OSError as e:
            raise IOFailureError(f"Cannot list {path}: {e}") from e

    def create_directory(self, path: Path) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IOFailureError(f"Cannot create directory {path}: {e}") from e

    def copy(self, source: Path, target: Path) -> None:
        """Recursively copy ``source`` to a not yet existing ``target``."""
        try:
            shutil.copytree(source, target, symlinks=True)
        except (OSError, shutil.Error) as e:
            raise IOFailureError(f"Cannot copy {source} to {target}: {e}") from e

    def remove(self, path: Path) -> None:
        """Remove a file or a directory tree."""
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        except OSError as e:
            raise IOFailureError(f"Cannot remove {path}: {e}") from e

    def rename(self, source: Path, target: Path) -> None:
        try:
            os.rename(source, target)
        except OSError as e:
            raise IOFailureError(f"Cannot move {source} to {target}: {e}") from e

    def same_device(self, first: Path, second: Path) -> bool:
        """Whether two existing paths live on the same filesystem."""
        try:
            return os.stat(first).st_dev == os.stat(second).st_dev
        except OSError as e:
            raise IOFailureError(f"Cannot stat {first} or {second}: {e}") from e

    def directory_size(self, path: Path) -> int:
        """Total size in bytes of all regular files below ``path``."""
        total = 0
        try:
            for dirpath, _, filenames in os.walk(path):
                for filename in filenames:
                    file_path = os.path.join(dirpath, filename)
                    if not os.path.islink(file_path):
                        total += os.path.getsize(file_path)
        except OSError as e:
            raise IOFailureError(f"Cannot measure {path}: {e}") from e
        return total
