"""
FastAPI application entry point.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventdesk.config import get_settings
from eventdesk.errors import EventDeskError
from eventdesk.function_routes import router as functions_router
from eventdesk.routes import router

logger = logging.getLogger(__name__)


def _add_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(EventDeskError)
    async def handle_eventdesk_error(request: Request, exc: EventDeskError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info(
                "%s %s rejected (%d): %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        content = {"detail": exc.message}
        report_id = getattr(exc, "report_id", None)
        if report_id:
            content["report_id"] = report_id
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("%s %s failed", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500, content={"detail": EventDeskError.default_message}
        )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="EventDesk API", version="0.1.0")
    _add_cors(app)
    _register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    if settings.serve_functions:
        app.include_router(functions_router, prefix=settings.functions_prefix)
    return app


app = create_app()
