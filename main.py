import logging
from contextlib import AsyncExitStack

from fastapi import FastAPI

from speechable.connections import mongo_lifespan, redis_lifespan
from speechable.api.auth import router as auth_router
from speechable.api.user import router as user_router
from speechable.utils.config import settings
from speechable.utils.errors import register_error_handlers


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def combined_lifespan(app: FastAPI):
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(mongo_lifespan(app))
        await stack.enter_async_context(redis_lifespan(app))

        yield


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=combined_lifespan,
    docs_url="/api/docs" if settings.debug else None,
)

register_error_handlers(app)

# Auth routes first so fixed paths win over the admin /{user_id} routes
app.include_router(auth_router, prefix="/api/users", tags=["auth"])
app.include_router(user_router, prefix="/api/users", tags=["users"])
