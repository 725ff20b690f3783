"""Shared Redis client for rate-limit counters and the readiness probe."""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    """Create the client. Connections open lazily on the first command."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_optional_redis() -> redis.Redis | None:
    """The client, or None when this process runs without Redis."""
    return _pool


def get_redis() -> redis.Redis:
    client = get_optional_redis()
    if client is None:
        msg = "Redis is not available; init_redis() has not run"
        raise RuntimeError(msg)
    return client
