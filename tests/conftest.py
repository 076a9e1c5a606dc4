"""Test configuration and fixtures."""

import pytest

from vm_image_cache import CacheConfig, ImageCache


@pytest.fixture
def cache_config(tmp_path):
    """Cache configuration rooted in a temporary data directory."""
    return CacheConfig.from_data_dir(tmp_path / "data")


@pytest.fixture
def cache(cache_config):
    """Image cache over temporary roots."""
    return ImageCache(cache_config)


def pytest_collection_modifyitems(config, items):
    """Mark every test as a unit test unless marked otherwise."""
    for item in items:
        if "unit" not in item.keywords:
            item.add_marker(pytest.mark.unit)
