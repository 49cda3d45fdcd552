"""
Region-scoped, tag-invalidatable cache of whole result sets.

Keys are ``<operation>:<region>:<normalised parts>``; entries carry tags for
their operation, region, the users and jobs they mention, so that writes to a
posting or profile can drop every result that might include it.
"""

import hashlib
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from loguru import logger

from app.libs.matching.cache import BackgroundWriter, CacheStore
from app.libs.matching.exceptions import CacheInvalidationError

T = TypeVar("T")

MAX_KEY_LENGTH = 250

SEARCH_TAG = "search"
RECOMMENDATIONS_TAG = "recommendations"
AI_RESPONSES_TAG = "ai-responses"


def region_tag(region: str) -> str:
    return f"region:{region.strip().lower()}"


def job_tag(job_id: str) -> str:
    return f"job:{job_id}"


def user_tag(user_id: str) -> str:
    return f"user:{user_id}"


class ResultCache:
    def __init__(self, store: CacheStore, writer: Optional[BackgroundWriter] = None):
        self.store = store
        self.writer = writer or BackgroundWriter("result cache")

    @staticmethod
    def generate_key(operation: str, region: str, **key_parts: Any) -> str:
        """
        Build a deterministic cache key.

        ``None`` parts are dropped, parts are ordered by name and list values
        are sorted, so argument order never changes the key. Keys longer than
        250 characters are replaced by their sha256 digest.
        """
        parts = [operation, region.strip().lower()]
        for name, value in sorted(key_parts.items()):
            if value is None:
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                try:
                    value = sorted(value)
                except TypeError:
                    logger.warning(f"Could not sort list for key part '{name}', using original order.")
                    value = list(value)
                value = ",".join(str(item) for item in value)
            elif isinstance(value, str):
                value = " ".join(value.lower().split())
            parts.append(f"{name}={value}")

        key = ":".join(str(part) for part in parts)
        if len(key) > MAX_KEY_LENGTH:
            key = f"{operation}:" + hashlib.sha256(key.encode("utf-8")).hexdigest()
            logger.debug(f"Generated cache key exceeded {MAX_KEY_LENGTH} chars, hashed to: {key}")
        return key

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        ttl: int,
        tags: Callable[[T], Iterable[str]],
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> T:
        """
        Return the cached value for ``key`` or compute, return and store it.

        Args:
            key: Key from ``generate_key``
            compute: Produces the value on a miss; its errors propagate
            ttl: Entry time-to-live in seconds
            tags: Tags for the computed value (may depend on its content)
            encode: Turns the value into something the store can serialize
            decode: Inverse of ``encode`` for cached values
        """
        try:
            cached = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Result cache read failed, treating as miss: {str(e)}", key=key)
            cached = None

        if cached is not None:
            try:
                value = decode(cached)
                logger.debug("Result cache hit", key=key)
                return value
            except Exception as e:
                logger.warning(f"Discarding undecodable cached result: {str(e)}", key=key)

        value = await compute()
        self.writer.submit(
            self.store.set(key, encode(value), ttl=ttl, tags=list(dict.fromkeys(tags(value)))),
            description=key,
        )
        return value

    async def invalidate_tags(self, tags: Iterable[str]) -> Dict[str, int]:
        """
        Invalidate every tag, then report the failures together.

        Raises:
            CacheInvalidationError: If any tag could not be invalidated
        """
        removed: Dict[str, int] = {}
        failed: List[str] = []
        for tag in tags:
            try:
                removed[tag] = await self.store.invalidate(tag)
            except Exception as e:
                logger.error(f"Failed to invalidate tag {tag}: {str(e)}")
                failed.append(tag)
        if failed:
            raise CacheInvalidationError(f"Could not invalidate tags: {', '.join(failed)}")
        logger.info("Cache tags invalidated", tags=list(removed), removed=sum(removed.values()))
        return removed

    async def invalidate_job(self, job_id: str) -> Dict[str, int]:
        return await self.invalidate_tags([job_tag(job_id), SEARCH_TAG, RECOMMENDATIONS_TAG])

    async def invalidate_user(self, user_id: str) -> Dict[str, int]:
        return await self.invalidate_tags([user_tag(user_id)])

    async def invalidate_region(self, region: str) -> Dict[str, int]:
        return await self.invalidate_tags([region_tag(region)])


def search_tags(region: str, job_ids: List[str]) -> List[str]:
    return [SEARCH_TAG, AI_RESPONSES_TAG, region_tag(region), *(job_tag(j) for j in job_ids)]


def recommendation_tags(region: str, user_id: str, job_ids: List[str]) -> List[str]:
    return [
        RECOMMENDATIONS_TAG,
        AI_RESPONSES_TAG,
        region_tag(region),
        user_tag(user_id),
        *(job_tag(j) for j in job_ids),
    ]
