"""API error handling and response helpers."""

import logging
from typing import Any, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse

from rentledger.services.errors import (
    ExcessPayment,
    InvalidAllocation,
    InvalidContractState,
    InvalidDate,
    InvalidPayment,
    LedgerError,
    MissingExchangeRate,
    MissingMethod,
    NotFound,
    RegenerationFailed,
    UnsupportedConversion,
)

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ExcessPayment: status.HTTP_409_CONFLICT,
    InvalidContractState: status.HTTP_409_CONFLICT,
    RegenerationFailed: status.HTTP_409_CONFLICT,
    InvalidAllocation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidPayment: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidDate: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MissingMethod: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MissingExchangeRate: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedConversion: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def http_status_for(error: LedgerError) -> int:
    """HTTP status for a domain error (400 for anything unmapped)."""
    for error_type, http_status in HTTP_STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def error_response(code: str, message: str) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": code,
            "message": message,
        }
    }


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a LedgerError as a JSON error body."""
    http_status = http_status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {http_status} {exc.code}: {exc.message}")
    return JSONResponse(status_code=http_status, content=error_response(exc.code, exc.message))


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Render a ValueError raised by input validation in services."""
    logger.info(f"{request.method} {request.url.path} -> 400 invalid_request: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response("invalid_request", str(exc)),
    )


__all__ = ["error_response", "http_status_for", "ledger_error_handler", "value_error_handler"]
