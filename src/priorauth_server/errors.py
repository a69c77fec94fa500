"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises typed errors (:mod:`priorauth_rulesets.errors`), all of which
subclass ``ValueError``.  Typed errors map directly; any other ``ValueError``
falls back to a keyword check on its message.  Route handlers never catch
these themselves.

Response bodies carry a generic ``detail`` plus a stable ``code`` the client
can branch on.  Session ids and phases are logged, not returned.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from priorauth_rulesets.errors import (
    DrugNotFound,
    GraphNotFound,
    NodeNotFound,
    NotFoundError,
    SessionClosed,
    SessionNotFound,
)

logger = logging.getLogger(__name__)

# (exception type, status, code); first isinstance match wins
_TYPED_ERRORS: list[tuple[type[Exception], int, str]] = [
    (SessionNotFound, 404, "session_not_found"),
    (GraphNotFound, 404, "question_set_not_found"),
    (NodeNotFound, 404, "question_not_found"),
    (DrugNotFound, 404, "drug_not_found"),
    (NotFoundError, 404, "not_found"),
    (SessionClosed, 409, "session_closed"),
]

_DETAILS: dict[int, str] = {
    404: "Resource not found",
    409: "Session is closed",
    400: "Invalid request",
}


def classify_value_error(exc: ValueError) -> tuple[int, str]:
    """Return ``(status, code)`` for an SDK or plain ``ValueError``."""
    for exc_type, status, code in _TYPED_ERRORS:
        if isinstance(exc, exc_type):
            return status, code

    msg = str(exc).lower()
    if "not found" in msg:
        return 404, "not_found"
    if "closed" in msg:
        return 409, "session_closed"
    return 400, "invalid_request"


def _error_response(status: int, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"detail": _DETAILS.get(status, "Invalid request"), "code": code},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    status, code = classify_value_error(exc)
    logger.warning("%s [%d] %s %s: %s", code, status, request.method, request.url.path, exc)
    return _error_response(status, code)


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Unknown reference id in a lookup."""
    logger.warning("KeyError %s %s: %s", request.method, request.url.path, exc)
    return _error_response(404, "not_found")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "internal_error"},
    )
