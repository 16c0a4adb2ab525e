"""
PyCatalog FastAPI application.

Serves the formula registry and catalog records under ``/api/v1``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pycatalog.api.v1 import router as v1_router
from pycatalog.core.config import settings
from pycatalog.core.exceptions import EvalError, PyCatalogException, RegistryError, StoreError
from pycatalog.core.logging import get_logger, setup_logging
from pycatalog.db.session import close_db, init_db

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")
    await init_db()
    yield
    await close_db()


def _error_response(exc: PyCatalogException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_eval_error(request: Request, exc: EvalError) -> JSONResponse:
    """An expression submitted for preview could not be computed."""
    logger.info(
        f"Expression rejected: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return _error_response(exc)


async def handle_registry_error(request: Request, exc: RegistryError) -> JSONResponse:
    """An administrator action on a formula was refused."""
    logger.info(
        f"Formula action refused: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return _error_response(exc)


async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    # Missing records are a client error; anything else is the backend failing
    if exc.status_code >= 500:
        logger.error(
            f"Store failure: {exc.message}",
            extra={
                "error_code": exc.code,
                "record_id": exc.record_id,
                "path": request.url.path,
                "original_error": repr(exc.original_error),
            },
        )
    return _error_response(exc)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies in the same envelope as engine errors."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": errors},
            }
        },
    )


def create_app() -> FastAPI:
    setup_logging(log_level=settings.log_level, json_logs=settings.is_production)

    app = FastAPI(
        title=settings.app_name,
        description="Derived-attribute formulas for a product catalog",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    app.add_exception_handler(EvalError, handle_eval_error)
    app.add_exception_handler(RegistryError, handle_registry_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    app.include_router(v1_router, prefix=settings.api_v1_prefix)
    return app


app = create_app()
