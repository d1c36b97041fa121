import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from app.config import settings
from app.database import engine
from app.services.presence_service import PresenceRegistry

logging.basicConfig(
    level=logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    # Live push channels, process-local
    app.state.presence = PresenceRegistry()

    yield

    # Shutdown
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="Murmur API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

from app.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from app.routers.auth import router as auth_router  # noqa: E402
from app.routers.comments import router as comments_router  # noqa: E402
from app.routers.friendships import router as friendships_router  # noqa: E402
from app.routers.likes import router as likes_router  # noqa: E402
from app.routers.notifications import router as notifications_router  # noqa: E402
from app.routers.posts import router as posts_router  # noqa: E402
from app.routers.realtime import router as realtime_router  # noqa: E402
from app.routers.users import router as users_router  # noqa: E402

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(posts_router)
app.include_router(comments_router)
app.include_router(likes_router)
app.include_router(friendships_router)
app.include_router(notifications_router)
app.include_router(realtime_router)


@app.get("/health")
async def health():
    return {"status": "ok", "online_users": len(app.state.presence)}
