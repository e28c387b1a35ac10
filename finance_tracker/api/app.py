"""
FastAPI application factory.

DESIGN DECISION: Errors are translated in one place. Routers raise the
domain exceptions from `finance_tracker.errors` and the handlers below
map them to `{message, error}` bodies with the matching status code.
Request bodies that fail pydantic validation never reach a tracker.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finance_tracker import __version__
from finance_tracker.api.routes import (
    analytics,
    auth,
    bills,
    budgets,
    chat,
    goals,
    health,
    transactions,
)
from finance_tracker.errors import (
    FinanceTrackerError,
    UnauthorizedError,
    UpstreamFailureError,
    ValidationFailedError,
)
from finance_tracker.orchestrator import AppComponents, create_app_components
from finance_tracker.services.storage import StorageError
from finance_tracker.validation import issues_from_validation_error


logger = structlog.get_logger()


def error_body(message: str, error: str, details: Optional[list] = None) -> dict:
    body = {"message": message, "error": error}
    if details:
        body["details"] = jsonable_encoder(details)
    return body


async def handle_domain_error(request: Request, exc: FinanceTrackerError) -> JSONResponse:
    details = exc.issues if isinstance(exc, ValidationFailedError) else None
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error_code, details),
        headers=headers,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=ValidationFailedError.status_code,
        content=error_body(
            "Validation failed",
            ValidationFailedError.error_code,
            issues_from_validation_error(exc),
        ),
    )


async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("storage_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=UpstreamFailureError.status_code,
        content=error_body("The record store is unavailable", UpstreamFailureError.error_code),
    )


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """Build the API around `components` (or the configured defaults)."""
    components = components or create_app_components()

    app = FastAPI(title="Personal Finance Tracker API", version=__version__)
    app.state.components = components

    app.add_middleware(
        CORSMiddleware,
        allow_origins=components.settings.app.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FinanceTrackerError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StorageError, handle_storage_error)

    for module in (auth, transactions, budgets, goals, bills, analytics, chat, health):
        app.include_router(module.router, prefix="/api")

    return app
