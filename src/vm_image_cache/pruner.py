"""Removal of namespace directories left empty by cache mutations."""

from pathlib import Path

from .filesystem import DirectoryEntry, FileSystem


def prune(file_system: FileSystem, path: Path) -> bool:
    """Remove ``path`` and its subdirectories when they hold no files.

    Subdirectories are pruned first. ``path`` itself is deleted only when it
    directly contains no file and every subdirectory was pruned away. A
    directory holding any file, even a stray one, is never removed, nor is
    one holding a symlink.

    Args:
        file_system: Filesystem collaborator
        path: Directory to prune

    Returns:
        True if ``path`` is now gone (or never existed)

    Raises:
        IOFailureError: If listing or removal fails
    """
    if not file_system.exists(path):
        return True

    empty = True
    for entry in file_system.list(path):
        if isinstance(entry, DirectoryEntry) and not entry.is_symlink:
            # No short-circuit: every child gets its own chance to be pruned
            empty = prune(file_system, path / entry.name) and empty
        else:
            empty = False

    if not empty:
        return False

    file_system.remove(path)
    return True
