"""Filesystem-backed cache of VM images and containers."""

import logging
import uuid
from pathlib import Path

from .bundle import BundleParser, VMBundle
from .config import CacheConfig
from .exceptions import (
    AlreadyExistsError,
    ImageCacheError,
    InvalidOperationError,
    NotFoundError,
)
from .filesystem import FileSystem
from .models import ImageID, ImageItem, ImageReference, ImageType, Target
from .pruner import prune
from .reference import (
    REFERENCE_FORMAT,
    parse_reference,
    relative_path,
    target_descriptor,
    target_type,
)
from .scanner import STAGING_DIRECTORY, TreeScanner
from .system import System, WallClock

logger = logging.getLogger(__name__)


class ImageCache:
    """Store of image and container bundles under two independent roots.

    Not safe for concurrent mutation: existence checks and pruning are
    check-then-act sequences without locking, so callers must serialize
    mutating calls against the same roots.
    """

    def __init__(
        self,
        config: CacheConfig,
        bundle_parser: BundleParser | None = None,
        file_system: FileSystem | None = None,
        system: System | None = None,
        wall_clock: WallClock | None = None,
    ) -> None:
        self.config = config
        self.bundle_parser = bundle_parser or BundleParser()
        self.file_system = file_system or FileSystem()
        self.system = system or System()
        self.wall_clock = wall_clock or WallClock()
        self.scanner = TreeScanner(self.file_system, self.bundle_parser)

    @property
    def images_root(self) -> Path:
        return self.config.images_root

    @property
    def containers_root(self) -> Path:
        return self.config.containers_root

    def make_image_reference(self, reference: str) -> ImageReference:
        """Reserve a new image identity without touching disk.

        The caller materializes the bundle at ``path(result)``.

        Raises:
            MalformedReferenceError: If reference cannot be parsed
            AlreadyExistsError: If an image already exists at that path
        """
        descriptor = parse_reference(reference)
        absolute_path = self.images_root / relative_path(descriptor)
        if self.file_system.exists(absolute_path):
            raise AlreadyExistsError(
                f"Cannot create empty reference, image with given reference "
                f"({REFERENCE_FORMAT}) already exists: {reference}"
            )
        return ImageReference(id=ImageID.make(), descriptor=descriptor, type=ImageType.IMAGE)

    def find_reference(self, reference: str) -> ImageReference:
        """Resolve as an image first, then as a container.

        Any failure of the image lookup falls through to the containers.
        When the container lookup finds nothing either, the image lookup's
        error is raised, so a corrupt image bundle is not reported as a
        plain miss.
        """
        try:
            return self.find_image_reference(reference)
        except ImageCacheError as image_error:
            try:
                return self.find_container_reference(reference)
            except NotFoundError:
                raise image_error from None

    def find_image_reference(self, reference: str) -> ImageReference:
        return self.resolve(reference, ImageType.IMAGE)

    def find_container_reference(self, reference: str) -> ImageReference:
        return self.resolve(reference, ImageType.CONTAINER)

    def resolve(self, reference: str, type: ImageType) -> ImageReference:
        """Turn a name or an id into a reference of the given type.

        The templated path is tried first. When nothing exists there, every
        bundle under the root is scanned for one whose id matches
        ``reference`` verbatim.

        Raises:
            MalformedReferenceError: If reference cannot be parsed
            NotFoundError: If neither lookup finds a bundle
            CorruptBundleError: If a matching bundle has an unreadable state
        """
        descriptor = parse_reference(reference)
        absolute_path = self.root(type) / relative_path(descriptor)

        if self.file_system.exists(absolute_path) and self.bundle_parser.is_bundle(
            absolute_path
        ):
            state = self.bundle_parser.read_state(VMBundle(absolute_path))
            return ImageReference(id=state.id, descriptor=descriptor, type=type)

        for candidate in self.scanner.scan(self.root(type), type):
            if str(candidate.id) == reference:
                return candidate

        raise NotFoundError(f"Cannot find the {type.value}: {reference}")

    def list_images(self) -> list[ImageItem]:
        return self._items(self.scanner.scan(self.images_root, ImageType.IMAGE))

    def list_containers(self) -> list[ImageItem]:
        return self._items(self.scanner.scan(self.containers_root, ImageType.CONTAINER))

    def remove_image(self, reference: ImageReference) -> None:
        """Delete a bundle and prune empty namespace directories.

        Raises:
            NotFoundError: If nothing exists at the reference's path
            IOFailureError: If deletion or pruning fails
        """
        absolute_path = self.path(reference)
        if not self.file_system.exists(absolute_path):
            raise NotFoundError(f"Cannot remove, nothing at {absolute_path}")

        self.file_system.remove(absolute_path)
        prune(self.file_system, self.images_root)
        prune(self.file_system, self.containers_root)
        logger.info(f"Removed {reference.type.value} {reference.descriptor}")

    def clone_image(self, source: ImageReference, target: Target) -> ImageReference:
        """Copy a bundle to a new path under a freshly minted id.

        The copy is assembled in a staging directory under the target root
        and renamed into place once its state record is restamped, so a
        failed clone never leaves a bundle at the target path.

        Args:
            source: Resolved reference to copy
            target: NamedTarget (new image) or EphemeralTarget (new container)

        Returns:
            Reference of the clone

        Raises:
            InvalidOperationError: If target resolves to the source's path
            AlreadyExistsError: If a bundle already occupies the target path
            CorruptBundleError: If the copied state record is unreadable
            IOFailureError: If copying fails
        """
        source_path = self.path(source)
        target_id = ImageID.make()
        target_reference = ImageReference(
            id=target_id,
            descriptor=target_descriptor(target, source, target_id),
            type=target_type(target),
        )
        target_path = self.path(target_reference)

        if source_path == target_path:
            raise InvalidOperationError("Cannot clone, target reference is the same as source")
        if not self.file_system.exists(source_path):
            raise NotFoundError(f"Cannot clone, nothing at {source_path}")
        if self.file_system.exists(target_path):
            raise AlreadyExistsError(f"Cannot clone, {target_path} already exists")

        staging_root = self.root(target_reference.type) / STAGING_DIRECTORY
        staging_path = staging_root / uuid.uuid4().hex
        self.file_system.create_directory(staging_root)
        try:
            self.file_system.copy(source_path, staging_path)

            bundle = VMBundle(staging_path)
            state = self.bundle_parser.read_state(bundle)
            state.id = target_id
            state.created_at = self.wall_clock.now()
            self.bundle_parser.write_state(state, bundle)

            self.file_system.create_directory(target_path.parent)
            self.file_system.rename(staging_path, target_path)
        except ImageCacheError:
            if self.file_system.exists(staging_path):
                self.file_system.remove(staging_path)
            prune(self.file_system, self.root(target_reference.type))
            raise

        prune(self.file_system, staging_root)
        logger.info(
            f"Cloned {source.descriptor} into {target_reference.type.value} "
            f"{target_reference.descriptor}"
        )
        return target_reference

    def move_image(self, source: ImageReference, target: ImageReference) -> None:
        """Relocate a bundle to ``target``'s path keeping its id.

        A bundle already at the target path is removed first.

        Raises:
            InvalidOperationError: If source and target share a path
            NotFoundError: If nothing exists at the source path
            AlreadyExistsError: If the target path holds something other than a bundle
            IOFailureError: If the relocation fails
        """
        source_path = self.path(source)
        target_path = self.path(target)

        if source_path == target_path:
            raise InvalidOperationError("Cannot move, target reference is the same as source")
        if not self.file_system.exists(source_path):
            raise NotFoundError(f"Cannot move, nothing at {source_path}")

        if self.file_system.exists(target_path):
            # Only a bundle may be replaced, never a namespace holding others
            if not self.bundle_parser.is_bundle(target_path):
                raise AlreadyExistsError(
                    f"Cannot move, {target_path} exists and is not a bundle"
                )
            self.remove_image(target)

        self.file_system.create_directory(target_path.parent)
        try:
            if self.file_system.same_device(source_path, target_path.parent):
                self.file_system.rename(source_path, target_path)
            else:
                self.system.execute(["mv", str(source_path), str(target_path)])
        except ImageCacheError:
            prune(self.file_system, self.root(target.type))
            raise

        prune(self.file_system, self.containers_root)
        if source.type is not ImageType.CONTAINER:
            prune(self.file_system, self.root(source.type))
        logger.info(f"Moved {source.descriptor} to {target.descriptor}")

    def path(self, reference: ImageReference) -> Path:
        """Absolute bundle path of a reference (no I/O)."""
        return self.root(reference.type) / relative_path(reference.descriptor)

    def root(self, type: ImageType) -> Path:
        if type is ImageType.CONTAINER:
            return self.containers_root
        return self.images_root

    def _items(self, references: set[ImageReference]) -> list[ImageItem]:
        items = []
        for reference in sorted(references, key=lambda r: str(r.descriptor)):
            absolute_path = self.path(reference)
            state = self.bundle_parser.read_state(VMBundle(absolute_path))
            items.append(
                ImageItem(
                    reference=reference,
                    created_at=state.created_at,
                    size=self.file_system.directory_size(absolute_path),
                )
            )
        return items
