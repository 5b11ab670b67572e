"""API error handling and response helpers."""

from typing import Any, Dict

from fastapi import HTTPException, status

from rentledger.services.errors import LedgerError, NotFoundError, PropertyNotInBuildingError


def http_status_for(error: LedgerError) -> int:
    """Map a ledger error to the HTTP status returned to clients.

    Missing entities (including a property outside the requested building) are
    404; every other ledger error is a bad request.
    """
    if isinstance(error, (NotFoundError, PropertyNotInBuildingError)):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def error_response(error: LedgerError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


def raise_ledger_error(error: LedgerError) -> None:
    """Raise an HTTPException from a LedgerError."""
    raise HTTPException(
        status_code=http_status_for(error),
        detail=error_response(error),
    ) from error
