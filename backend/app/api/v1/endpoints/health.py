"""
Health Check Endpoints

Endpoints:
- /health/live  - Basic liveness (app is running)
- /health/ready - Readiness check (database reachable, tables created)
- /health/deep  - Detailed diagnostics (database, rate-limit storage, email, document storage)
"""

from fastapi import APIRouter, HTTPException, status
from datetime import datetime
from typing import Dict, Any
import asyncio
import time

from sqlalchemy import text

from app.core.config import settings
from app.core.database import get_session_factory
from app.core.logging_config import logger
from app.services.email_service import email_service


router = APIRouter(prefix="/health", tags=["Health Checks"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the schools table exists"""
    start = time.time()
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
            try:
                await session.execute(text("SELECT COUNT(*) FROM schools"))
                tables_ok = True
            except Exception:
                tables_ok = False

        return {
            "status": "healthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": tables_ok,
        }
    except Exception as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "tables_ready": False,
            "error": str(e),
        }


async def check_redis() -> Dict[str, Any]:
    """Rate-limit storage; in-memory storage needs no check"""
    if not settings.REDIS_URL.startswith(("redis://", "rediss://")):
        return {"status": "healthy", "backend": "memory"}

    start = time.time()
    try:
        import redis.asyncio as redis

        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        await client.ping()
        await client.close()
        return {
            "status": "healthy",
            "backend": "redis",
            "latency_ms": round((time.time() - start) * 1000, 2),
        }
    except Exception as e:
        logger.warning(f"[HealthCheck] Redis check failed: {e}")
        return {
            "status": "degraded",
            "backend": "redis",
            "error": str(e),
            "message": "Rate limit storage unreachable",
        }


def check_email_config() -> Dict[str, Any]:
    if settings.USE_SENDGRID and settings.SENDGRID_API_KEY:
        return {"status": "healthy", "provider": "sendgrid"}
    if email_service.is_configured:
        return {"status": "healthy", "provider": "smtp", "host": settings.SMTP_HOST}
    return {
        "status": "degraded",
        "provider": "none",
        "message": "Email not configured - notification emails are skipped",
    }


def check_storage() -> Dict[str, Any]:
    if settings.STORAGE_MODE == "s3":
        return {
            "status": "healthy" if settings.AWS_ACCESS_KEY_ID or settings.USE_MINIO else "degraded",
            "provider": "minio" if settings.USE_MINIO else "s3",
            "bucket": settings.S3_BUCKET_NAME,
        }

    path = settings.STORAGE_DIR
    try:
        path.mkdir(parents=True, exist_ok=True)
        writable = path.is_dir()
    except OSError as e:
        return {"status": "unhealthy", "provider": "local", "path": str(path), "error": str(e)}
    return {"status": "healthy" if writable else "unhealthy", "provider": "local", "path": str(path)}


@router.get("/live")
async def liveness_check():
    """Liveness check: 200 while the process is up"""
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "app": settings.APP_NAME,
        "version": settings.API_VERSION,
    }


@router.get("/ready")
async def readiness_check():
    """
    Readiness check for the load balancer.

    Returns 503 until the database answers and the tables exist.
    """
    db_check = await check_database()
    is_ready = db_check.get("status") == "healthy" and db_check.get("tables_ready", False)

    response = {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {"database": db_check},
    }

    if not is_ready:
        logger.warning(f"[HealthCheck] Readiness check failed: {response}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready")

    return response


@router.get("/deep")
async def deep_health_check():
    """Full diagnostics for monitoring dashboards"""
    start_time = time.time()

    db_check, redis_check = await asyncio.gather(check_database(), check_redis())
    checks = {
        "database": db_check,
        "redis": redis_check,
        "email": check_email_config(),
        "storage": check_storage(),
    }

    statuses = [c.get("status", "unknown") for c in checks.values()]
    if "unhealthy" in statuses:
        overall = "unhealthy"
    elif "degraded" in statuses:
        overall = "degraded"
    else:
        overall = "healthy"

    response = {
        "status": overall,
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.API_VERSION,
        "total_check_time_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }

    if overall == "unhealthy":
        logger.error(f"[HealthCheck] Deep check unhealthy: {response}")

    return response
