import logging
import traceback

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sima.core.exceptions import (
    AppException,
    ConflictException,
    InternalErrorException,
    ReferenceException,
    RequiredFieldException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


def error_response(request: Request, exc: AppException, original: BaseException | None = None) -> JSONResponse:
    body = {"error": True, "message": exc.message, "code": exc.code}
    if exc.details is not None:
        body["details"] = exc.details
    if not _is_production(request):
        source = original or exc
        body["stack"] = "".join(traceback.format_exception(type(source), source, source.__traceback__))

    user = getattr(request.state, "user", None)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request error %s %s -> %s %s: %s (user=%s)",
        request.method, request.url.path, exc.status_code, exc.code, exc.message,
        user.get("id") if user else None,
        exc_info=original if exc.status_code >= 500 else None,
    )
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def app_exception_handler(request: Request, exc: AppException):
    return error_response(request, exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err["loc"] if p not in ("body", "query", "path")), "message": err["msg"]}
        for err in exc.errors()
    ]
    return error_response(request, ValidationException("Datos inválidos", details=details))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        not_found = AppException("Recurso no encontrado")
        not_found.status_code = 404
        not_found.code = "ROUTE_NOT_FOUND"
        return error_response(request, not_found)
    generic = AppException(str(exc.detail))
    generic.status_code = exc.status_code
    generic.code = "HTTP_ERROR"
    generic.headers = getattr(exc, "headers", None)
    return error_response(request, generic)


async def database_error_handler(request: Request, exc: asyncpg.PostgresError):
    # Storage constraint violations that slipped past service-level checks.
    if isinstance(exc, asyncpg.UniqueViolationError):
        translated: AppException = ConflictException()
    elif isinstance(exc, asyncpg.ForeignKeyViolationError):
        translated = ReferenceException()
    elif isinstance(exc, asyncpg.NotNullViolationError):
        translated = RequiredFieldException()
    else:
        translated = InternalErrorException()
    return error_response(request, translated, original=exc)


async def unhandled_exception_handler(request: Request, exc: Exception):
    return error_response(request, InternalErrorException(), original=exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(asyncpg.PostgresError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
