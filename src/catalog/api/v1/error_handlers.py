"""
FastAPI exception handlers for AppErrors that escape a route.

The product routes answer errors from `ServiceResult`s themselves; these handlers
cover everything else (dependencies, future routes) with the same bodies and
status codes, via `exc.to_payload()` and `exc.http_status()`.

    app = FastAPI()
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalog.exceptions.base import AppError, DuplicateError, RepositoryError

logger = logging.getLogger(__name__)


async def duplicate_error_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    logger.info(
        "api.duplicate",
        extra={"method": request.method, "path": request.url.path, "fields": exc.fields},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    # str(exc) may carry DB detail: logs only, the payload is generic
    logger.error(
        "api.repository_error",
        extra={"method": request.method, "path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "api.client_error",
        extra={"method": request.method, "path": request.url.path, "error_code": exc.error_code},
    )
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette picks the handler of the closest class in the exception's MRO
    app.add_exception_handler(DuplicateError, duplicate_error_handler)
    app.add_exception_handler(RepositoryError, repository_error_handler)
    app.add_exception_handler(AppError, app_error_handler)
