from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from taskapi.core.config import get_settings
from taskapi.core.logging_setup import setup_logging
from taskapi.db.create_tables import create_all
from taskapi.db.session import dispose_engine
from taskapi.domain.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    StoreError,
    TaskApiError,
    ValidationError,
)
from taskapi.repositories.sql_repository import SQLRepository
from taskapi.routers import tasks as tasks_router
from taskapi.routers import users as users_router
from taskapi.services.auth_service import AuthService
from taskapi.services.task_service import TaskService

logger = logging.getLogger(__name__)

WELCOME = "Welcome to the Task Manager API. Explore the endpoints at /docs."

_ERROR_STATUS = {
    ValidationError: 400,
    AuthenticationError: 401,
    NotFoundError: 404,
    ConflictError: 409,
    StoreError: 500,
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, no sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _status_for(exc: TaskApiError) -> int:
    for kind, code in _ERROR_STATUS.items():
        if isinstance(exc, kind):
            return code
    return 500


async def _domain_error_handler(request: Request, exc: TaskApiError):
    code = _status_for(exc)
    if code >= 500:
        logger.error("%s %s failed", request.method, request.url.path, exc_info=exc)
        return JSONResponse({"message": "Internal Server Error"}, status_code=code)
    content = {"message": exc.message}
    if isinstance(exc, ValidationError) and exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(content, status_code=code)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    logger.debug("rejected body on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse({"message": "Invalid Body"}, status_code=400)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging()
    if settings.auto_create_tables:
        create_all()
    logger.info("task api started env=%s", settings.app_env)
    try:
        yield
    finally:
        dispose_engine()
        logger.info("task api stopped")


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = get_settings()
    app = FastAPI(title="Task Manager API", lifespan=_lifespan)

    repository = SQLRepository()
    app.state.settings = settings
    app.state.repository = repository
    app.state.task_service = TaskService(repository)
    app.state.auth_service = AuthService(repository)

    allowed_cors = set(settings.cors_origins)
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"})
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    app.add_exception_handler(TaskApiError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @app.get("/")
    def welcome():
        return {"message": WELCOME}

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(users_router.router)
    app.include_router(tasks_router.router)
    return app
