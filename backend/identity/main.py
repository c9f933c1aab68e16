from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.requests import Request
from starlette.responses import Response

from identity.api.router import router as api_router
from identity.core.log import configure_logging
from identity.core.settings import get_settings, is_local, parse_allowed_hosts, parse_allowed_origins
from identity.services.errors import (
    RepositoryError,
    SessionNotFoundError,
    UserNotFoundError,
    XsrfTokenMismatchError,
)

logger = logging.getLogger("identity.api")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SessionNotFoundError)
    async def _session_not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Session not found"})

    @app.exception_handler(UserNotFoundError)
    async def _user_not_found(request: Request, exc: UserNotFoundError) -> JSONResponse:
        content: dict = {"detail": "User not found"}
        if exc.missing_ids:
            content["missing_ids"] = exc.missing_ids
        return JSONResponse(status_code=404, content=content)

    @app.exception_handler(XsrfTokenMismatchError)
    async def _xsrf_mismatch(request: Request, exc: XsrfTokenMismatchError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": "XSRF token mismatch"})

    @app.exception_handler(RepositoryError)
    async def _repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.exception("Repository failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Identity",
        version="0.1.0",
        docs_url="/api/docs" if is_local(settings) else None,
        redoc_url="/api/redoc" if is_local(settings) else None,
        openapi_url="/api/openapi.json" if is_local(settings) else None,
    )

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=parse_allowed_hosts(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Xsrf-Token"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        resp: Response = await call_next(request)
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        return resp

    _register_error_handlers(app)
    app.include_router(api_router, prefix="/api")
    logger.info("Identity API configured (env=%s)", settings.app_env)
    return app
