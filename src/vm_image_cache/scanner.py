"""Recursive discovery of bundles under a cache root."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .bundle import BundleParser, VMBundle
from .filesystem import DirectoryEntry, FileSystem
from .models import ImageReference, ImageType
from .reference import parse_reference

logger = logging.getLogger(__name__)

# Clone staging area kept directly under each root
STAGING_DIRECTORY = ".staging"


@dataclass(frozen=True)
class BundleNode:
    """Directory holding a bundle."""

    path: Path


@dataclass(frozen=True)
class NamespaceNode:
    """Plain directory grouping bundles by repository path."""

    path: Path


Node = Union[BundleNode, NamespaceNode]


class TreeScanner:
    """Finds every bundle below a root.

    Symlinked directories are never followed, so link cycles inside the
    data directory cannot make a scan loop.
    """

    def __init__(self, file_system: FileSystem, bundle_parser: BundleParser) -> None:
        self.file_system = file_system
        self.bundle_parser = bundle_parser

    def classify(self, path: Path) -> Node:
        if self.bundle_parser.is_bundle(path):
            return BundleNode(path)
        return NamespaceNode(path)

    def scan(self, root: Path, kind: ImageType) -> set[ImageReference]:
        """Resolve every bundle under ``root`` into a reference.

        Args:
            root: Images or containers root
            kind: Type assigned to the discovered references

        Returns:
            Set of references; ordering is unspecified

        Raises:
            CorruptBundleError: If a discovered bundle has an unreadable state
            IOFailureError: If a directory cannot be listed
        """
        result: set[ImageReference] = set()
        if not self.file_system.exists(root):
            return result
        self._scan(root, root, kind, result)
        return result

    def _scan(
        self, path: Path, root: Path, kind: ImageType, result: set[ImageReference]
    ) -> None:
        for entry in self.file_system.list(path):
            if not isinstance(entry, DirectoryEntry):
                continue
            if entry.is_symlink:
                logger.debug(f"Skipping symlinked directory {path / entry.name}")
                continue
            if path == root and entry.name == STAGING_DIRECTORY:
                continue

            node = self.classify(path / entry.name)
            if isinstance(node, BundleNode):
                result.add(self._resolve(node, root, kind))
            else:
                self._scan(node.path, root, kind, result)

    def _resolve(self, node: BundleNode, root: Path, kind: ImageType) -> ImageReference:
        descriptor = parse_reference(node.path.relative_to(root).as_posix())
        state = self.bundle_parser.read_state(VMBundle(node.path))
        return ImageReference(id=state.id, descriptor=descriptor, type=kind)
