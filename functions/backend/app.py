"""
FastAPI application entry point for the app shell.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.routes import router
from shared.errors import NotSignedInError, UserFacingError

logger = logging.getLogger(__name__)


async def _not_signed_in(request: Request, exc: NotSignedInError) -> JSONResponse:
    return JSONResponse(
        status_code=401, content={"title": exc.title, "detail": exc.message}
    )


async def _user_facing_error(request: Request, exc: UserFacingError) -> JSONResponse:
    logger.info("%s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=400, content={"title": exc.title, "detail": exc.message}
    )


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    app = FastAPI(title="CatChat", version="0.1.0")
    app.add_exception_handler(NotSignedInError, _not_signed_in)
    app.add_exception_handler(UserFacingError, _user_facing_error)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
