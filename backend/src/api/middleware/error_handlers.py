"""FastAPI exception handlers rendering the shared error envelope."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...services.auth import AuthError
from ...services.extractor import ExtractionError, InvalidSourceError
from ...services.item_store import ItemNotFoundError, StoreError
from ...services.llm import LLMError

logger = logging.getLogger(__name__)

DEFAULT_ERRORS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_401_UNAUTHORIZED: ("unauthorized", "Authorization required"),
    status.HTTP_403_FORBIDDEN: ("forbidden", "Forbidden"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: (
        "payload_too_large",
        "Payload exceeds allowed size",
    ),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
}

# Most specific first
DOMAIN_ERRORS: Tuple[Tuple[type, int, str], ...] = (
    (InvalidSourceError, status.HTTP_400_BAD_REQUEST, "invalid_source"),
    (ExtractionError, status.HTTP_500_INTERNAL_SERVER_ERROR, "extraction_failed"),
    (ItemNotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR, "store_error"),
    (LLMError, status.HTTP_500_INTERNAL_SERVER_ERROR, "llm_error"),
)


def _normalize_error(
    status_code: int, detail: Any
) -> Tuple[str, str, Optional[Dict[str, Any]]]:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    if isinstance(detail, dict):
        error = detail.get("error", default_error)
        message = detail.get("message", default_message)
        detail_payload = detail.get("detail")
        if detail_payload is None:
            remainder = {
                k: v for k, v in detail.items() if k not in {"error", "message", "detail"}
            }
            detail_payload = remainder or None
        return error, message, detail_payload
    if isinstance(detail, str) and detail:
        return default_error, detail, None
    return default_error, default_message, None


def error_response(status_code: int, detail: Any) -> JSONResponse:
    error, message, extra = _normalize_error(status_code, detail)
    return JSONResponse(
        status_code=status_code, content={"error": error, "message": message, "detail": extra}
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return error_response(status.HTTP_400_BAD_REQUEST, {"detail": {"errors": errors}})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, exc.detail)


async def auth_exception_handler(request: Request, exc: AuthError) -> JSONResponse:
    return error_response(
        exc.status_code, {"error": exc.error, "message": exc.message, "detail": exc.detail or None}
    )


async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map extraction, store and LLM errors onto their HTTP status."""
    for exc_type, status_code, error in DOMAIN_ERRORS:
        if isinstance(exc, exc_type):
            if status_code >= 500:
                logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc}")
            message = getattr(exc, "message", None) or str(exc)
            return error_response(status_code, {"error": error, "message": message})
    return await internal_exception_handler(request, exc)


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, None)


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(AuthError, auth_exception_handler)
    for exc_type, _, _ in DOMAIN_ERRORS:
        app.add_exception_handler(exc_type, domain_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)


__all__ = [
    "register_error_handlers",
    "error_response",
    "validation_exception_handler",
    "http_exception_handler",
    "auth_exception_handler",
    "domain_exception_handler",
    "internal_exception_handler",
]
