"""Test helpers for building bundles on disk."""

from datetime import datetime, timezone
from pathlib import Path

from vm_image_cache import BundleState, ImageCache, ImageReference

CREATED_AT = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def create_image(cache: ImageCache, reference: str, payload: str = "disk") -> ImageReference:
    """Reserve an image reference and materialize its bundle."""
    image = cache.make_image_reference(reference)
    bundle = cache.bundle_parser.create_bundle(
        cache.path(image), BundleState(id=image.id, created_at=CREATED_AT), {"cpuCount": 2}
    )
    (bundle.path / "disk.img").write_text(payload)
    return image


def tree(root: Path) -> set[str]:
    """All paths below root, relative and posix formatted."""
    if not root.exists():
        return set()
    return {p.relative_to(root).as_posix() for p in root.rglob("*")}


def empty_directories(root: Path) -> list[Path]:
    """Directories under (and including) root that hold nothing."""
    if not root.exists():
        return []
    candidates = [root] + [p for p in root.rglob("*") if p.is_dir()]
    return [p for p in candidates if not any(p.iterdir())]
