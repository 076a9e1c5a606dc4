"""Process execution and wall clock collaborators."""

import logging
import subprocess
from datetime import datetime, timezone

from .exceptions import IOFailureError

logger = logging.getLogger(__name__)


class System:
    """Runs external commands."""

    def execute(self, arguments: list[str]) -> None:
        """Run a command to completion.

        Args:
            arguments: Program followed by its arguments

        Raises:
            IOFailureError: If the command cannot be started or exits non-zero
        """
        logger.debug(f"Executing: {' '.join(arguments)}")
        try:
            subprocess.run(arguments, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise IOFailureError(
                f"Command {arguments[0]!r} failed with exit code {e.returncode}: {stderr}"
            ) from e
        except OSError as e:
            raise IOFailureError(f"Cannot execute {arguments[0]!r}: {e}") from e


class WallClock:
    """Source of the current time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
