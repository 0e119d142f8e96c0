from speechable.connections.mongo import mongo_lifespan
from speechable.connections.redis import redis_lifespan

__all__ = ["mongo_lifespan", "redis_lifespan"]
