"""Warehouse error taxonomy and the API error envelope.

Services raise the domain errors below; ``warehouse_exception_handler`` turns
them (and DRF's own exceptions) into a stable JSON shape::

    {"code": "insufficient_stock", "message": "...", "errors": {...}, "status": 409}
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    ParseError,
    PermissionDenied,
    Throttled,
)
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger("floorops.errors")

GENERIC_SERVER_ERROR_MESSAGE = "An unexpected error occurred."


class WarehouseError(Exception):
    code = "warehouse_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "", errors: Any = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.errors = errors


class ValidationError(WarehouseError):
    """Malformed input: non-positive quantity, unknown type, cyclic hierarchy."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(WarehouseError):
    """Requested quantity exceeds what is available at the source."""

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "", requested=None, available=None, errors: Any = None):
        if errors is None and requested is not None:
            errors = {"requested": str(requested), "available": str(available)}
        super().__init__(message or "Insufficient stock", errors=errors)
        self.requested = requested
        self.available = available


class NotFoundError(WarehouseError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(WarehouseError):
    """Stale version or a state transition that is not allowed."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class PermissionDeniedError(WarehouseError):
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN


class InvariantViolation(WarehouseError):
    """Quantity bookkeeping no longer adds up. Never recovered automatically."""

    code = "invariant_violation"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


@dataclass
class DyeLotVarianceWarning:
    """Advisory attached to read responses; never raised."""

    item_id: int
    item_name: str
    sku: str
    dye_lots: list = field(default_factory=list)
    lot_count: int = 0
    message: str = ""
    severity: str = "warning"

    def as_dict(self) -> dict:
        return asdict(self)


EXCEPTION_CODE_MAP: dict[type[Exception], str] = {
    DRFValidationError: "validation_error",
    NotAuthenticated: "not_authenticated",
    AuthenticationFailed: "authentication_failed",
    PermissionDenied: "permission_denied",
    NotFound: "not_found",
    MethodNotAllowed: "method_not_allowed",
    ParseError: "parse_error",
    Throttled: "throttled",
}


def build_error_envelope(*, code: str, message: str, errors: Any, status_code: int) -> dict[str, Any]:
    return {
        "code": code,
        "message": message,
        "errors": errors,
        "status": status_code,
    }


def error_response(
    *,
    code: str,
    message: str,
    errors: Any = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    return Response(
        build_error_envelope(code=code, message=message, errors=errors, status_code=status_code),
        status=status_code,
    )


def error_body(exc: WarehouseError) -> tuple[dict, int]:
    """Envelope and status for a domain error, for handlers that return plain bodies."""
    return (
        build_error_envelope(code=exc.code, message=exc.message, errors=exc.errors, status_code=exc.status_code),
        exc.status_code,
    )


def warehouse_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    if isinstance(exc, WarehouseError):
        if isinstance(exc, InvariantViolation):
            logger.critical("invariant_violation", extra={"event": "invariant_violation", "detail": exc.message})
        body, code = error_body(exc)
        return Response(body, status=code)

    if isinstance(exc, Http404):
        exc = NotFound()

    response = drf_exception_handler(exc, context)
    if response is None:
        view_name = context.get("view").__class__.__name__ if context.get("view") else "unknown"
        logger.exception("Unhandled API exception in %s", view_name)
        return error_response(
            code="internal_server_error",
            message=GENERIC_SERVER_ERROR_MESSAGE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response.data = build_error_envelope(
        code=_build_code(exc),
        message=_build_message(exc, response.data),
        errors=_normalize_errors(response.data),
        status_code=response.status_code,
    )
    return response


def _build_code(exc: Exception) -> str:
    for exception_type, stable_code in EXCEPTION_CODE_MAP.items():
        if isinstance(exc, exception_type):
            return stable_code
    if isinstance(exc, APIException):
        return str(getattr(exc, "default_code", "api_error"))
    return "internal_server_error"


def _build_message(exc: Exception, data: Any) -> str:
    if isinstance(exc, DRFValidationError):
        return "Validation failed."
    detail = None
    if isinstance(data, Mapping):
        detail = data.get("detail")
    elif isinstance(data, str):
        detail = data
    if detail:
        return str(detail)
    if isinstance(exc, Throttled):
        return "Request was throttled."
    return str(getattr(exc, "detail", "Request failed."))


def _normalize_errors(data: Any) -> Any:
    if isinstance(data, Mapping):
        if set(data.keys()) == {"detail"}:
            return None
        return data
    if isinstance(data, Sequence) and not isinstance(data, str):
        return data
    return None
