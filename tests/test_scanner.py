"""Tests for bundle discovery."""

import os

import pytest

from vm_image_cache.bundle import BundleParser
from vm_image_cache.exceptions import CorruptBundleError
from vm_image_cache.filesystem import FileSystem
from vm_image_cache.models import ImageDescriptor, ImageType
from vm_image_cache.scanner import BundleNode, NamespaceNode, TreeScanner

from tests.helpers import create_image


@pytest.fixture
def scanner():
    return TreeScanner(FileSystem(), BundleParser())


def test_scan_missing_root(tmp_path, scanner):
    """Test that a root that does not exist scans as empty."""
    assert scanner.scan(tmp_path / "missing", ImageType.IMAGE) == set()


def test_scan_nested_namespaces(cache, scanner):
    """Test that bundles are found at any namespace depth."""
    images = {
        create_image(cache, "alpine:latest"),
        create_image(cache, "team/macos:14"),
        create_image(cache, "team/tools/builder"),
    }

    found = scanner.scan(cache.images_root, ImageType.IMAGE)

    assert found == images
    assert {str(r.descriptor) for r in found} == {
        "alpine:latest",
        "team/macos:14",
        "team/tools/builder",
    }


def test_scan_does_not_descend_into_bundles(cache, scanner):
    """Test that directories inside a bundle are payload, not namespaces."""
    image = create_image(cache, "alpine:latest")
    nested = cache.path(image) / "nested"
    nested.mkdir()
    (nested / "config.json").write_text("{}")

    assert scanner.scan(cache.images_root, ImageType.IMAGE) == {image}


def test_scan_assigns_kind(cache, scanner):
    """Test that the requested kind is stamped on results."""
    create_image(cache, "alpine")

    (found,) = scanner.scan(cache.images_root, ImageType.CONTAINER)

    assert found.type is ImageType.CONTAINER
    assert found.descriptor == ImageDescriptor("alpine")


def test_scan_skips_symlinked_directories(cache, scanner):
    """Test that a symlink cycle does not loop or duplicate results."""
    image = create_image(cache, "team/alpine:latest")
    os.symlink(cache.images_root, cache.images_root / "team" / "loop")
    os.symlink(cache.path(image), cache.images_root / "alias")

    assert scanner.scan(cache.images_root, ImageType.IMAGE) == {image}


def test_scan_skips_staging_directory(cache, scanner):
    """Test that clone staging leftovers are not reported."""
    image = create_image(cache, "alpine")
    staging = cache.images_root / ".staging" / "partial"
    staging.mkdir(parents=True)
    (staging / "config.json").write_text("{}")

    assert scanner.scan(cache.images_root, ImageType.IMAGE) == {image}


def test_scan_corrupt_bundle(cache, scanner):
    """Test that an unreadable state record fails the scan."""
    image = create_image(cache, "alpine")
    (cache.path(image) / "state.json").write_text("garbage")

    with pytest.raises(CorruptBundleError):
        scanner.scan(cache.images_root, ImageType.IMAGE)


def test_classify(cache, scanner):
    """Test the bundle/namespace distinction."""
    image = create_image(cache, "team/alpine")

    assert scanner.classify(cache.path(image)) == BundleNode(cache.path(image))
    assert scanner.classify(cache.images_root / "team") == NamespaceNode(
        cache.images_root / "team"
    )
