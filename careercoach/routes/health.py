from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from careercoach.config import settings

router = APIRouter(tags=["health"])


def describe_database(url: str) -> dict:
    """Connection details of ``url`` without credentials."""
    try:
        parsed = make_url(url)
    except ArgumentError:
        return {"error": "Could not parse DATABASE_URL"}
    return {
        "driver": parsed.drivername,
        "host": parsed.host,
        "port": parsed.port or "default",
        "database": parsed.database,
    }


@router.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME
    }


@router.get("/health/config")
async def config_check():
    """Report which settings are present, never their values"""
    return {
        "has_database_url": bool(settings.DATABASE_URL),
        "has_gemini_api_key": bool(settings.GEMINI_API_KEY.strip()),
        "has_jwt_secret": bool(settings.JWT_SECRET_KEY),
        "gemini_model": settings.GEMINI_MODEL,
        "database": describe_database(settings.database_url),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
