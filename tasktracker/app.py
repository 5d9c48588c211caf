import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.templating import Jinja2Templates
from starlette.middleware.base import BaseHTTPMiddleware

from tasktracker.core.config import Settings, get_settings
from tasktracker.core.errors import TaskStoreError
from tasktracker.core.logging_config import configure_logging
from tasktracker.core.utils import error_response, store_error_response
from tasktracker.repositories.json_storage import DocumentStore
from tasktracker.routers import backups as backups_router
from tasktracker.routers import pages as pages_router
from tasktracker.routers import requests as requests_router
from tasktracker.routers import stats as stats_router
from tasktracker.routers import tasks as tasks_router
from tasktracker.services.request_service import RequestService

logger = logging.getLogger(__name__)

BASE = os.path.dirname(__file__)
TEMPLATES = os.path.join(BASE, "templates")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; style-src 'self' 'unsafe-inline'",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _allowed_origins(settings: Settings) -> list[str]:
    allowed_cors = set(settings.cors_origins)
    if settings.app_env != "prod":
        allowed_cors.update(
            {
                "http://localhost:8000",
                "http://127.0.0.1:8000",
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            }
        )
    return sorted(origin for origin in allowed_cors if origin)


async def _store_error_handler(request: Request, exc: TaskStoreError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return store_error_response(exc)


async def _body_error_handler(request: Request, exc: RequestValidationError):
    validation = [
        {"field": ".".join(str(part) for part in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return error_response("Invalid JSON in request body", 400, validation)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory compatível com uvicorn/gunicorn (``--factory``) e com os testes."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Task Tracker API")

    origins = _allowed_origins(settings)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    store = DocumentStore.from_settings(settings)
    app.state.settings = settings
    app.state.request_service = RequestService(store)
    app.state.templates = Jinja2Templates(directory=TEMPLATES)

    app.add_exception_handler(TaskStoreError, _store_error_handler)
    app.add_exception_handler(RequestValidationError, _body_error_handler)

    app.include_router(requests_router.router)
    app.include_router(tasks_router.router)
    app.include_router(stats_router.router)
    app.include_router(backups_router.router)
    app.include_router(pages_router.router)

    logger.info("Task tracker using %s (backups in %s)", settings.data_file, settings.backup_dir)
    return app
