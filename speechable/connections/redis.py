import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis
from fastapi import FastAPI

from speechable.utils.config import settings


logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    if _redis_client is None:
        raise RuntimeError("Redis not initialized")
    return _redis_client


def use_redis(client: Optional[redis.Redis]) -> None:
    """Install an already-built client, or clear it with None."""
    global _redis_client
    _redis_client = client


def init_redis() -> None:
    use_redis(
        redis.Redis(
            db=settings.redis_db,
            port=settings.redis_port,
            host=settings.redis_host,
            password=settings.redis_password,
            decode_responses=True,
            socket_timeout=2.0,
        )
    )
    logger.info("Redis client configured for %s:%s", settings.redis_host, settings.redis_port)


def close_redis() -> None:
    if _redis_client is not None:
        try:
            _redis_client.close()
        finally:
            use_redis(None)


@asynccontextmanager
async def redis_lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_redis()
    try:
        yield
    finally:
        close_redis()
