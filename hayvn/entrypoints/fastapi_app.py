# hayvn/entrypoints/fastapi_app.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings
from ..db import engine
from ..domain.errors import AuthError, NotFoundError
from ..logging_setup import configure_logging
from ..models import Base
from .api.routers import health, recommend, sync

log = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def create_app(*, create_tables: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(title="Hayvn - IDX sync & matching")

    if create_tables:

        @app.on_event("startup")
        async def _startup() -> None:
            # Single place where DB tables are created in dev.
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    # must be added before CORS, so 500 responses still carry CORS headers
    @app.middleware("http")
    async def _unhandled(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            log.exception("unhandled error on %s", request.url.path)
            return _error(500, str(exc) or "Unhandled error")

    origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return _error(exc.status_code, str(exc))

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            return _error(405, "Use POST")
        return _error(exc.status_code, str(exc.detail))

    # Routers
    app.include_router(health.router)
    app.include_router(sync.router)
    app.include_router(recommend.router)

    return app
