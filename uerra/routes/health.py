"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, Depends, HTTPException
from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.core.settings import settings
from datetime import datetime, timezone


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
def database_health(backend: BackendClient = Depends(get_backend)):
    """
    Database and storage connectivity check.
    Answers 503 when either backend service is unreachable.
    """
    checks = backend.ping()
    if checks.get("database") != "connected":
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {checks.get('database')}"
        )
    if checks.get("storage") != "available":
        raise HTTPException(
            status_code=503,
            detail=f"Storage connection failed: {checks.get('storage')}"
        )

    return {
        "status": "healthy",
        "database": "firestore",
        "connected": True,
        "storage": checks.get("storage"),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
