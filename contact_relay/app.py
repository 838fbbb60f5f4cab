"""FastAPI application factory."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_relay import __version__
from contact_relay.config import Settings
from contact_relay.logging import bind_request
from contact_relay.models import utcnow
from contact_relay.service import ContactService

logger = structlog.get_logger()

AVAILABLE_ENDPOINTS = {
    "GET /": "Informações da API",
    "GET /health": "Status do servidor",
    "GET /test": "Teste CORS",
    "POST /enviar-email": "Envio de formulário",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: start the contact service. Shutdown: stop it."""
    service: ContactService = app.state.service
    await service.start()
    yield
    await service.stop()
    logger.info("shutdown_complete")


def create_app(
    settings: Settings | None = None,
    service: ContactService | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = service.settings if service is not None else Settings()
    if service is None:
        service = ContactService(settings)

    app = FastAPI(
        title="Contact Relay",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        bind_request(
            uuid.uuid4().hex,
            method=request.method,
            path=request.url.path,
            origin=request.headers.get("origin", "sem-origin"),
        )
        logger.info("request_received")
        response = await call_next(request)
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            logger.info("route_not_found")
            return JSONResponse(
                status_code=404,
                content={
                    "sucesso": False,
                    "mensagem": "Endpoint não encontrado",
                    "path": request.url.path,
                    "method": request.method,
                    "available_endpoints": AVAILABLE_ENDPOINTS,
                    "timestamp": utcnow().isoformat(),
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "sucesso": False,
                "mensagem": str(exc.detail),
                "timestamp": utcnow().isoformat(),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "sucesso": False,
                "mensagem": "Requisição inválida",
                "timestamp": utcnow().isoformat(),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        error_id = uuid.uuid4().hex
        logger.exception("unhandled_error", error_id=error_id)
        return JSONResponse(
            status_code=500,
            content={
                "sucesso": False,
                "mensagem": "Erro interno do servidor",
                "timestamp": utcnow().isoformat(),
                "error_id": error_id,
            },
        )

    from contact_relay.routers.contact import router as contact_router
    from contact_relay.routers.status import router as status_router

    app.include_router(status_router)
    app.include_router(contact_router)

    return app
