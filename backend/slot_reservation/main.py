"""
Slot Reservation API - Main Application Entry Point

Capacity-limited appointment slots booked by many concurrent clients:
- Admission under a slot row lock, seat counts derived from reservation rows
- Two-step PENDING -> CONFIRMED flow with a capacity re-check on confirmation
- Persisted expiry deadlines reclaimed by timers and a periodic sweep
- Structured logging with request correlation, Prometheus metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slot_reservation.core.config import get_settings
from slot_reservation.core.logging import setup_logging, get_logger
from slot_reservation.core.metrics import metrics_endpoint
from slot_reservation.api.router import api_router
from slot_reservation.api.errors import register_exception_handlers
from slot_reservation.api.middleware import RequestLoggingMiddleware
from slot_reservation.services.cache_service import get_redis, close_redis, get_cache_stats
from slot_reservation.services.expiry_reclaimer import get_reclaimer

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        grace_seconds=settings.RESERVATION_GRACE_SECONDS,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without slot listing cache")

    # Reclaim holds whose deadline passed while we were down
    reclaimer = get_reclaimer()
    await reclaimer.start()

    yield

    await reclaimer.stop()
    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Concurrency-safe reservations for capacity-limited appointment slots",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)
register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
