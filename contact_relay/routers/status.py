"""Service status endpoints: banner, health probe and CORS echo."""

from __future__ import annotations

import platform

from fastapi import APIRouter, Request

from contact_relay import __version__
from contact_relay.models import utcnow
from contact_relay.service import ContactService

router = APIRouter(tags=["status"])


@router.get("/")
async def root():
    return {
        "message": "API de contato do Portfolio - ONLINE!",
        "timestamp": utcnow().isoformat(),
        "version": __version__,
        "status": "FUNCIONANDO",
        "endpoints": {
            "health": "GET /health",
            "email": "POST /enviar-email",
            "test": "GET /test",
        },
        "cors_enabled": True,
    }


@router.get("/health")
async def health(request: Request):
    """Liveness probe; reports uptime and whether mail credentials are set."""
    service: ContactService = request.app.state.service
    return {
        "status": "HEALTHY",
        "timestamp": utcnow().isoformat(),
        "uptime": int(service.uptime_seconds),
        "email_configured": service.email_configured,
        "email_verified": service.email_verified,
        "python_version": platform.python_version(),
        "environment": service.settings.environment,
        "submissions": service.counters,
    }


@router.get("/test")
async def cors_test(request: Request):
    return {
        "message": "CORS funcionando!",
        "origin": request.headers.get("origin", "sem-origin"),
        "timestamp": utcnow().isoformat(),
        "method": request.method,
    }
