"""Cache configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

# Environment variable overriding the data directory
DATA_DIR_ENV = "VM_IMAGE_CACHE_HOME"
DATA_DIR_NAME = ".curie"


@dataclass(frozen=True)
class CacheConfig:
    """Locations of the two cache roots."""

    images_root: Path
    containers_root: Path

    @classmethod
    def from_data_dir(cls, data_dir: Path | str) -> "CacheConfig":
        """Place ``images/`` and ``containers/`` under ``data_dir``."""
        data_dir = Path(data_dir).expanduser()
        return cls(images_root=data_dir / "images", containers_root=data_dir / "containers")

    @classmethod
    def default(cls, home: Path | None = None) -> "CacheConfig":
        """Configuration rooted at the user's data directory.

        ``$VM_IMAGE_CACHE_HOME`` takes precedence over ``<home>/.curie``.
        """
        override = os.getenv(DATA_DIR_ENV)
        if override:
            return cls.from_data_dir(override)
        return cls.from_data_dir((home or Path.home()) / DATA_DIR_NAME)
