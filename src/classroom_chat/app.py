from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from classroom_chat.api.middleware.request_id import RequestIdMiddleware
from classroom_chat.api.v1.routers import conversations, health, ws
from classroom_chat.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from classroom_chat.config import settings
from classroom_chat.infrastructure.bus.redis_pubsub import (
    RedisChannelDirectory,
    RedisPubSubSubscriber,
    apply_op,
)
from classroom_chat.infrastructure.db.session import dispose_engine

logger = logging.getLogger(__name__)


async def _on_pubsub_op(op: str, data: dict[str, Any]) -> None:
    """Apply a channel op published by any process to local WS connections."""
    await apply_op(ws.get_manager(), op, data)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    if settings.CHANNEL_BACKEND != "redis":
        logger.info("Using in-process channel directory")
        yield
        await dispose_engine()
        return

    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        _on_pubsub_op,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber
    ws.use_directory(
        RedisChannelDirectory(app.state.redis, settings.REDIS_PUBSUB_CHANNEL, ws.get_manager())
    )

    yield

    ws.use_directory(ws.get_manager())
    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Classroom Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
