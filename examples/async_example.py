"""Example usage of the async cache API."""

import asyncio
import logging
import sys
import tempfile
from datetime import datetime, timezone

# Add parent directory to path
sys.path.insert(0, "src")

from vm_image_cache import (
    BundleParser,
    BundleState,
    CacheConfig,
    EphemeralTarget,
    ImageCache,
    ImageCacheError,
    clone_image,
    find_reference,
    list_containers,
    list_images,
    remove_image,
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_image(config: CacheConfig, reference: str) -> None:
    """Reserve a reference and write a minimal bundle for it."""
    cache = ImageCache(config)
    image = cache.make_image_reference(reference)
    BundleParser().create_bundle(
        cache.path(image),
        BundleState(id=image.id, created_at=datetime.now(timezone.utc)),
        {"cpuCount": 2, "memorySize": 4 * 1024**3},
    )


async def main():
    """Clone an image into a throwaway container and clean it up."""
    with tempfile.TemporaryDirectory() as data_dir:
        config = CacheConfig.from_data_dir(data_dir)

        try:
            seed_image(config, "alpine:latest")

            images = await list_images(config)
            logger.info(f"Found {len(images)} images")

            source = await find_reference("alpine:latest", config)
            container = await clone_image(source, EphemeralTarget(), config)
            logger.info(f"Created container {container.descriptor} ({container.id})")

            for item in await list_containers(config):
                logger.info(f"  {item.reference.descriptor}: {item.size:,} bytes")

            await remove_image(container, config)
            logger.info(f"Containers left: {len(await list_containers(config))}")

        except ImageCacheError as e:
            logger.error(f"Cache error: {e}")


if __name__ == "__main__":
    asyncio.run(main())
