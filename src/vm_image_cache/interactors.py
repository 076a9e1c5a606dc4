"""Workflows composed on top of the cache: clone, rm and ephemeral run."""

import logging
import threading
from typing import Any, Callable, Protocol

from .bundle import VMBundle
from .cache import ImageCache
from .models import EphemeralTarget, ImageReference, NamedTarget

logger = logging.getLogger(__name__)


class VMRuntime(Protocol):
    """VM execution collaborator used by ``run``.

    ``run`` blocks or returns as the runtime sees fit; it must call
    ``on_stop`` once the VM stopped or failed to stop.
    """

    def run(self, bundle: VMBundle, on_stop: Callable[[], None], **options: Any) -> None:
        ...


class StopObserver:
    """One-shot callback: invokes ``action`` at most once, from any thread."""

    def __init__(self, action: Callable[[], None]) -> None:
        self._action = action
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def __call__(self) -> None:
        with self._lock:
            if self._fired:
                return
            self._fired = True
        self._action()


def clone(cache: ImageCache, source_reference: str, target_reference: str) -> ImageReference:
    """Clone an image into a new image at ``target_reference``."""
    source = cache.find_image_reference(source_reference)
    target = cache.clone_image(source, NamedTarget(target_reference))
    logger.info("Image has been cloned")
    return target


def remove(cache: ImageCache, reference: str) -> None:
    """Remove a container by name or id."""
    container = cache.find_container_reference(reference)
    cache.remove_image(container)


def run(
    cache: ImageCache, reference: str, runtime: VMRuntime, **options: Any
) -> ImageReference:
    """Run an image in a throwaway container.

    The image is cloned into an ephemeral container, and the container is
    removed when the runtime reports the VM stopped. Cleanup failures are
    logged, not raised, since they arrive on the runtime's thread.

    Args:
        cache: Image cache
        reference: Image name or id
        runtime: VM runtime collaborator
        **options: Passed through to ``runtime.run``

    Returns:
        Reference of the ephemeral container
    """
    logger.info(f"Run image {reference}")
    source = cache.find_image_reference(reference)
    container = cache.clone_image(source, EphemeralTarget())

    def cleanup() -> None:
        try:
            cache.remove_image(container)
        except Exception as e:
            logger.error(f"Failed to remove container {container.descriptor}: {e}")

    bundle = VMBundle(cache.path(container))
    runtime.run(bundle, StopObserver(cleanup), **options)
    return container
