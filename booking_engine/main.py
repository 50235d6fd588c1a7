from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from booking_engine.api.v1.api import api_router
from booking_engine.core.config import settings
from booking_engine.core.database import engine, init_db
from booking_engine.core.logging import setup_logging
from booking_engine.core.redis import RECONNECT_INTERVAL_SECONDS, redis_client

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting booking engine",
        environment=settings.ENVIRONMENT,
        timezone=settings.TIMEZONE,
    )
    await init_db()
    try:
        await redis_client.init_redis()
    except Exception:
        logger.warning(
            "Redis unavailable, serving availability uncached until reconnect",
            retry_in_seconds=RECONNECT_INTERVAL_SECONDS,
        )

    yield

    logger.info("Shutting down booking engine")
    await redis_client.close()
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": settings.VERSION}
