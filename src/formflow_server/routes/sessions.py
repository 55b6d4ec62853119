"""Session management endpoints — create, get, list, delete sessions.

A session is one respondent filling one form.  Sessions live in memory on
the engine's registry; deleting one discards its answers.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from formflow.engine import FormEngine
from formflow.models.session import SessionInfo

from formflow_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from formflow_server.dependencies import get_engine

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    """Body for POST /sessions.  ``session_id`` is generated when omitted."""
    form_id: str
    session_id: str | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def create_session(
    body: CreateSessionRequest,
    engine: FormEngine = Depends(get_engine),
) -> SessionInfo:
    """Start filling a form.

    Returns 201 on success, 404 if the form is unknown or unpublished, and
    409 if a session with the same id already exists.
    """
    return await engine.create_session(body.form_id, session_id=body.session_id)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> SessionInfo:
    """Get session info by session_id.

    Raises 404 if the session does not exist.
    """
    info = await engine.get_session(session_id)
    if info is None:
        raise ValueError(f"Session not found: session_id={session_id}")
    return info


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> None:
    """Discard a session.  Returns 204 on success, 404 if it does not exist."""
    await engine.delete_session(session_id)


@router.get("/sessions")
async def list_sessions(
    engine: FormEngine = Depends(get_engine),
    form_id: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[SessionInfo]:
    """List sessions, most recent first, optionally for a single form."""
    return await engine.list_sessions(form_id=form_id, limit=limit, offset=offset)
