"""
Kadima API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Default status catalog
- Background job scheduler
- CORS middleware
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.api import api_router
from app.core.auth import Operator, get_current_admin
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.redis import close_redis, init_redis, is_redis_available
from app.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.auth.jobs import register_auth_jobs
from app.modules.statuses.service import seed_default_statuses

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Startup failures are fatal in production and reported otherwise.
    """
    print(f"Starting Kadima API in {settings.python_env} mode...")

    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed, rate limits kept in memory: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        async with async_session_maker() as db:
            added = await seed_default_statuses(db)
        print(f"[OK] Status catalog ready ({added} added)")
    except Exception as e:
        print(f"[FAIL] Status catalog seeding failed: {e}")
        if settings.is_production:
            raise

    try:
        register_auth_jobs()
        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    print("Shutting down Kadima API...")

    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title=settings.app_name,
    description="Kadima programme registrations and back-office API",
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Kadima API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness probe: the database must answer, Redis is optional."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail={"error": "STORE_UNAVAILABLE", "message": "Database not reachable."},
        ) from e

    return {
        "status": "ready",
        "database": "connected",
        "redis": "connected" if is_redis_available() else "unavailable",
    }


# ============================================
# Background Job Endpoints
# ============================================
# Jobs run on schedule; these let an administrator inspect and run them now.


@app.get("/admin/jobs", tags=["Admin - Jobs"])
async def list_jobs(_admin: Operator = Depends(get_current_admin)):
    """List registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@app.post("/admin/jobs/{job_id}/trigger", tags=["Admin - Jobs"])
async def trigger_job(job_id: str, _admin: Operator = Depends(get_current_admin)):
    """Run a background job immediately."""
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
