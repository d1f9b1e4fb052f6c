"""Standardized API response helpers."""

from typing import Any, Dict, Optional, Tuple

from ninja import Schema

from core.exceptions import BudgetAppError, PartialPostingFailure

# Status codes an endpoint may answer with an error envelope
ERROR_CODES = frozenset({400, 403, 404, 502})


class ErrorResponse(Schema):
    status: str
    message: str
    code: int
    data: Optional[Any] = None


def success_response(
    data: Any = None, message: str = "Success", count: Optional[int] = None
) -> Dict[str, Any]:
    """Return a standardized success response."""
    response = {"status": "success", "message": message, "data": data}
    if count is not None:
        response["count"] = count
    return response


def error_response(message: str, code: int = 400, data: Any = None) -> Dict[str, Any]:
    """Return a standardized error response."""
    response = {"status": "error", "message": message, "code": code}
    if data is not None:
        response["data"] = data
    return response


def error_for(exc: BudgetAppError) -> Tuple[int, Dict[str, Any]]:
    """Map an application error to ``(status, body)`` for a ninja endpoint."""
    data = None
    if isinstance(exc, PartialPostingFailure):
        data = exc.report.as_dict()
    return exc.status_code, error_response(str(exc), code=exc.status_code, data=data)
