import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from millbook.config import settings
from millbook.database import engine
from millbook.middleware.exceptions import register_exception_handlers
from millbook.routers import bookings, config, health
from millbook.utils.cache import close_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("MillBook starting (%s)", settings.environment)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("MillBook stopped")


app = FastAPI(
    title="MillBook",
    description="Production and delivery booking for the mill's planning grid",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(bookings.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(config.router, prefix="/api/config", tags=["config"])
