from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from stakes_ledger.domain import DomainValidationError, IncompleteInputError, NotFoundError
from stakes_ledger.service import SessionNotFoundError


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


def domain_error(exc: DomainValidationError) -> HTTPException:
    if isinstance(exc, IncompleteInputError):
        return api_error(
            code="incomplete_input",
            message=str(exc),
            details={"missing_count": exc.missing_count},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if isinstance(exc, SessionNotFoundError):
        return api_error(code="session_not_found", message=str(exc), status_code=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, NotFoundError):
        return api_error(code="not_found", message=str(exc), status_code=status.HTTP_404_NOT_FOUND)
    return api_error(code="invalid_command", message=str(exc))
