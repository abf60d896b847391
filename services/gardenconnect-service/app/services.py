"""
Auto-match result cache.

Results of GET /api/match/{garden_id} are cached per (garden, min_score,
weights). Every cache key is also registered in a per-garden index set so a
garden's entries can be dropped together, and a global index set tracks the
per-garden sets so a volunteer change can drop everything.

Every invalidation bumps a generation counter. A ranking is only written if
the generation read before computing it is still current, so a result
computed from a volunteer list that changed mid-request is not cached. The
check and the write are separate round trips; a change landing exactly
between them can still leave a stale entry for at most one TTL.

All helpers are no-ops when redis is not configured, and redis failures are
logged and treated as cache misses.
"""

from .config import SERVICE_NAME
from .redis_client import redis_client
from .scoring import Weights

ALL_GARDENS_KEY = "matchkeys:gardens"
GENERATION_KEY = "matchkeys:generation"


def _num(value: float) -> str:
    # 30 and 30.0 must land on the same key
    return repr(float(value))


def cache_key(garden_id: int, min_score: float, weights: Weights) -> str:
    return (
        f"match:garden={garden_id}:min={_num(min_score)}"
        f":w={_num(weights.skills)}/{_num(weights.schedule)}"
    )


def garden_set_key(garden_id: int) -> str:
    return f"matchkeys:garden={garden_id}"


async def get_cached_result(key: str, client=None) -> str | None:
    client = client if client is not None else redis_client
    if client is None:
        return None
    try:
        return await client.get(key)
    except Exception as e:
        print(f"[{SERVICE_NAME}] cache read failed for {key}: {e}")
        return None


async def cache_generation(client=None) -> str | None:
    """Current invalidation generation, or None when the cache is unavailable."""
    client = client if client is not None else redis_client
    if client is None:
        return None
    try:
        return str(await client.get(GENERATION_KEY) or 0)
    except Exception as e:
        print(f"[{SERVICE_NAME}] cache generation read failed: {e}")
        return None


async def set_cache_with_index(
    *,
    cache_key_str: str,
    value: str,
    ttl_seconds: int,
    garden_id: int,
    generation: str | None = None,
    client=None,
) -> bool:
    """
    Store a cached result and index it under its garden for invalidation.

    When `generation` is given the write is skipped if an invalidation ran
    since it was read. Returns True when the entry was written.
    """
    client = client if client is not None else redis_client
    if client is None:
        return False

    set_key = garden_set_key(garden_id)
    try:
        if generation is not None and str(await client.get(GENERATION_KEY) or 0) != generation:
            return False

        pipe = client.pipeline()
        pipe.set(cache_key_str, value, ex=ttl_seconds)
        pipe.sadd(set_key, cache_key_str)
        pipe.expire(set_key, ttl_seconds + 5)
        pipe.sadd(ALL_GARDENS_KEY, set_key)
        pipe.expire(ALL_GARDENS_KEY, ttl_seconds + 5)
        await pipe.execute()
    except Exception as e:
        print(f"[{SERVICE_NAME}] cache write failed for {cache_key_str}: {e}")
        return False
    return True


async def invalidate_garden(garden_id: int, client=None) -> int:
    """
    Delete every cached result registered for one garden.
    Returns the number of cache keys deleted (best effort).
    """
    client = client if client is not None else redis_client
    if client is None:
        return 0

    set_key = garden_set_key(garden_id)
    try:
        keys = await client.smembers(set_key)
        pipe = client.pipeline()
        if keys:
            pipe.delete(*list(keys))
        pipe.delete(set_key)
        pipe.srem(ALL_GARDENS_KEY, set_key)
        pipe.incr(GENERATION_KEY)
        results = await pipe.execute()
    except Exception as e:
        print(f"[{SERVICE_NAME}] cache invalidation failed for garden {garden_id}: {e}")
        return 0

    if keys and results and isinstance(results[0], int):
        return results[0]
    return 0


async def invalidate_all(client=None) -> int:
    """
    Delete every cached auto-match result. Any volunteer change can move
    a volunteer into or out of any garden's result list.
    """
    client = client if client is not None else redis_client
    if client is None:
        return 0

    try:
        await client.incr(GENERATION_KEY)

        set_keys = await client.smembers(ALL_GARDENS_KEY)
        if not set_keys:
            return 0

        keys = set()
        for set_key in set_keys:
            keys.update(await client.smembers(set_key))

        pipe = client.pipeline()
        if keys:
            pipe.delete(*list(keys))
        pipe.delete(*list(set_keys))
        pipe.delete(ALL_GARDENS_KEY)
        results = await pipe.execute()
    except Exception as e:
        print(f"[{SERVICE_NAME}] cache invalidation failed: {e}")
        return 0

    if keys and results and isinstance(results[0], int):
        return results[0]
    return 0
