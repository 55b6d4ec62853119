"""Global exception handlers — map SDK exceptions to HTTP status codes.

The SDK raises ``ValueError`` for various conditions (session not found,
duplicate session, answer for a question that is not on the current step).
Rather than catching these in every route, we install global handlers that
inspect the message and pick the right HTTP status code.  This keeps route
handlers clean and focused on the happy path.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    # Duplicate session id
    ("already exists", 409),
    # Unknown session, form or question
    ("not found", 404),
    # Advance on a terminal session, response requested too early
    ("already completed", 409),
    ("has no response yet", 409),
    ("cannot retry submission", 409),
    # Answer for a question that is not on the current step
    ("not on the current step", 400),
    # Answer value of an unsupported type
    ("must be a string", 400),
]


# --- Client-safe messages keyed by HTTP status code ---
# Internal details (session ids, question ids) stay in the server log; the
# client receives only a generic description.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Conflict with the current session state",
    400: "Invalid request",
}


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map SDK ``ValueError`` to a contextual HTTP error response.

    Inspects the exception message to decide between 404 (not found),
    409 (conflict), or 400 (bad request).  Falls back to 400 for
    unrecognised messages.

    The raw exception message is logged server-side but **never** sent
    to the client.
    """
    msg = str(exc)
    status = 400  # default
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (e.g. unknown form id) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
