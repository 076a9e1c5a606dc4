"""Async functional cache operations.

Each coroutine builds an ImageCache for the given configuration and runs the
blocking call in the default executor. Calls that mutate the cache still
have to be serialized by the caller.
"""

import asyncio
from functools import partial
from typing import Callable, TypeVar

from .bundle import VMBundle, read_state_async
from .cache import ImageCache
from .config import CacheConfig
from .models import BundleState, ImageItem, ImageReference, Target

T = TypeVar("T")


async def _run(config: CacheConfig | None, call: Callable[[ImageCache], T]) -> T:
    cache = ImageCache(config or CacheConfig.default())
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(call, cache))


async def list_images(config: CacheConfig | None = None) -> list[ImageItem]:
    """캐시에 저장된 모든 이미지 목록을 조회합니다.

    Args:
        config: 캐시 설정 (기본값: CacheConfig.default())

    Returns:
        list[ImageItem]: 이미지 항목 목록 (참조, 생성 시각, 디스크 크기)

    Raises:
        CorruptBundleError: 상태 레코드를 읽을 수 없는 번들이 있는 경우

    Examples:
        images = await list_images()
        for item in images:
            print(f"{item.reference.descriptor}: {item.size:,} bytes")
    """
    return await _run(config, lambda cache: cache.list_images())


async def list_containers(config: CacheConfig | None = None) -> list[ImageItem]:
    """캐시에 저장된 모든 컨테이너 목록을 조회합니다.

    Args:
        config: 캐시 설정 (기본값: CacheConfig.default())

    Returns:
        list[ImageItem]: 컨테이너 항목 목록

    Raises:
        CorruptBundleError: 상태 레코드를 읽을 수 없는 번들이 있는 경우
    """
    return await _run(config, lambda cache: cache.list_containers())


async def find_reference(reference: str, config: CacheConfig | None = None) -> ImageReference:
    """이름 또는 ID로 이미지를, 없으면 컨테이너를 찾습니다.

    Args:
        reference: 참조 문자열
            - 이름: "alpine:latest", "team/macos:14"
            - ID: "0b5e1a8c-..." (state.json의 id)
        config: 캐시 설정 (기본값: CacheConfig.default())

    Returns:
        ImageReference: 확인된 참조

    Raises:
        NotFoundError: 이미지와 컨테이너 모두 찾을 수 없는 경우
    """
    return await _run(config, lambda cache: cache.find_reference(reference))


async def make_image_reference(
    reference: str, config: CacheConfig | None = None
) -> ImageReference:
    """새 이미지 참조를 예약합니다 (디스크에는 쓰지 않음).

    Raises:
        AlreadyExistsError: 같은 경로에 이미지가 이미 존재하는 경우
    """
    return await _run(config, lambda cache: cache.make_image_reference(reference))


async def clone_image(
    source: ImageReference, target: Target, config: CacheConfig | None = None
) -> ImageReference:
    """번들을 새 ID로 복제합니다.

    Args:
        source: 원본 참조
        target: NamedTarget("name:tag") 또는 EphemeralTarget()
        config: 캐시 설정 (기본값: CacheConfig.default())

    Returns:
        ImageReference: 복제본의 참조

    Raises:
        InvalidOperationError: 대상 경로가 원본과 같은 경우
        AlreadyExistsError: 대상 경로에 번들이 이미 존재하는 경우

    Examples:
        source = await find_reference("alpine:latest")
        container = await clone_image(source, EphemeralTarget())
    """
    return await _run(config, lambda cache: cache.clone_image(source, target))


async def move_image(
    source: ImageReference, target: ImageReference, config: CacheConfig | None = None
) -> None:
    """번들을 대상 경로로 이동합니다 (ID 유지)."""
    await _run(config, lambda cache: cache.move_image(source, target))


async def remove_image(reference: ImageReference, config: CacheConfig | None = None) -> None:
    """번들을 삭제하고 비어 있는 디렉토리를 정리합니다.

    Raises:
        NotFoundError: 참조 경로에 번들이 없는 경우
    """
    await _run(config, lambda cache: cache.remove_image(reference))


async def read_bundle_state(
    reference: ImageReference, config: CacheConfig | None = None
) -> BundleState:
    """번들의 상태 레코드(id, createdAt)를 비동기로 읽습니다."""
    cache = ImageCache(config or CacheConfig.default())
    return await read_state_async(VMBundle(cache.path(reference)))


__all__ = [
    "list_images",
    "list_containers",
    "find_reference",
    "make_image_reference",
    "clone_image",
    "move_image",
    "remove_image",
    "read_bundle_state",
]
