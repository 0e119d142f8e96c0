from __future__ import annotations
from typing import Iterator

from fastapi import Request

from speechable.connections.redis import get_redis
from speechable.utils.errors import RateLimitedError


def limit_route(seconds: int):
    """Return a FastAPI dependency that rate-limits a client on a route for N seconds.

    Uses Redis TTL to block repeated calls from the same client address to the
    same path within the configured time window. The window only starts once
    the route has completed without raising, so rejected requests (unknown
    email, failed delivery) do not lock the client out. A window of 0
    disables it.
    """

    def _dependency(request: Request) -> Iterator[None]:
        if seconds <= 0:
            yield
            return
        client = get_redis()
        host = request.client.host if request.client else "unknown"
        key = f"rl:{host}:{request.url.path}"

        # If a TTL exists, the client must wait.
        ttl = client.ttl(key)
        if ttl and ttl > 0:
            raise RateLimitedError(f"Rate limited. Try again in {ttl}s")

        # Errors raised by the route surface here and skip the TTL.
        yield
        client.setex(name=key, time=seconds, value="1")

    return _dependency
