"""VM bundle layout and state record access.

A bundle is a directory holding ``config.json`` (opaque VM configuration,
only probed for parseability) and ``state.json`` with the bundle's id and
creation timestamp.
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from .exceptions import CorruptBundleError, IOFailureError
from .models import BundleState, ImageID

CONFIG_FILENAME = "config.json"
STATE_FILENAME = "state.json"


class VMBundle:
    """Paths inside a bundle directory."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def config(self) -> Path:
        return self.path / CONFIG_FILENAME

    @property
    def state(self) -> Path:
        return self.path / STATE_FILENAME

    def __repr__(self) -> str:
        return f"VMBundle({str(self.path)!r})"


def encode_state(state: BundleState) -> str:
    """Serialize a state record to JSON."""
    return json.dumps(
        {"id": str(state.id), "createdAt": state.created_at.isoformat()},
        indent=2,
    )


def decode_state(content: str | bytes, source: Any = None) -> BundleState:
    """Parse a state record.

    Args:
        content: Raw JSON content of state.json
        source: Where the content came from, for error messages

    Raises:
        CorruptBundleError: If the record is not valid
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CorruptBundleError(f"Invalid JSON in state record {source}: {e}") from e

    if not isinstance(data, dict):
        raise CorruptBundleError(f"State record {source} must be an object")

    if "id" not in data or "createdAt" not in data:
        raise CorruptBundleError(f"State record {source} is missing id or createdAt")

    try:
        created_at = datetime.fromisoformat(str(data["createdAt"]).replace("Z", "+00:00"))
    except ValueError as e:
        raise CorruptBundleError(f"Invalid createdAt in state record {source}: {e}") from e

    return BundleState(id=ImageID.parse(data["id"]), created_at=created_at)


class BundleParser:
    """Reads and writes bundle records."""

    def can_parse_config(self, path: Path) -> bool:
        """Check whether ``path`` holds a parseable bundle configuration."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                return isinstance(json.load(f), dict)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            return False

    def is_bundle(self, path: Path) -> bool:
        return self.can_parse_config(VMBundle(path).config)

    def read_state(self, bundle: VMBundle) -> BundleState:
        """Read the state record of a bundle.

        Raises:
            CorruptBundleError: If the record is missing or unparseable
        """
        try:
            content = bundle.state.read_bytes()
        except OSError as e:
            raise CorruptBundleError(f"Cannot read state record of {bundle}: {e}") from e
        return decode_state(content, bundle.state)

    def write_state(self, state: BundleState, bundle: VMBundle) -> None:
        """Replace the state record of a bundle atomically.

        Raises:
            IOFailureError: If the record cannot be written
        """
        try:
            fd, tmp_path = tempfile.mkstemp(dir=bundle.path, prefix=".state-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(encode_state(state))
                os.replace(tmp_path, bundle.state)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise IOFailureError(f"Cannot write state record of {bundle}: {e}") from e

    def create_bundle(
        self, path: Path, state: BundleState, config: dict[str, Any] | None = None
    ) -> VMBundle:
        """Materialize a new bundle directory with config and state.

        Raises:
            IOFailureError: If the directory or files cannot be written
        """
        bundle = VMBundle(path)
        try:
            bundle.path.mkdir(parents=True, exist_ok=False)
            bundle.config.write_text(json.dumps(config or {}, indent=2), encoding="utf-8")
        except OSError as e:
            raise IOFailureError(f"Cannot create bundle at {path}: {e}") from e
        self.write_state(state, bundle)
        return bundle


async def read_state_async(bundle: VMBundle) -> BundleState:
    """Async variant of BundleParser.read_state."""
    try:
        async with aiofiles.open(bundle.state, "rb") as f:
            content = await f.read()
    except OSError as e:
        raise CorruptBundleError(f"Cannot read state record of {bundle}: {e}") from e
    return decode_state(content, bundle.state)


async def write_state_async(state: BundleState, bundle: VMBundle) -> None:
    """Async variant of BundleParser.write_state."""
    tmp_path = bundle.path / f".state-{state.id}.tmp"
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(encode_state(state))
        await aiofiles.os.replace(tmp_path, bundle.state)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise IOFailureError(f"Cannot write state record of {bundle}: {e}") from e
