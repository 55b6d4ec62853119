"""Admin endpoints — bulk cleanup of idle sessions.

Protected by the ``ADMIN_API_KEY`` environment variable.  Every request
must include an ``X-Admin-Key`` header whose value matches the configured
key.  Returns 401 if missing, 403 if wrong.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from formflow.engine import FormEngine

from formflow_server.dependencies import get_engine, require_admin_key

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class CleanupResult(BaseModel):
    """Response body for cleanup operations."""
    affected_sessions: int
    idle_minutes: int


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/cleanup/sessions")
async def cleanup_sessions(
    idle_minutes: int = Query(60, ge=0),
    engine: FormEngine = Depends(get_engine),
    _admin: str = Depends(require_admin_key),
) -> CleanupResult:
    """Discard sessions that have not been touched for ``idle_minutes``.

    ``idle_minutes=0`` discards every session.
    """
    affected = await engine.purge_idle_sessions(timedelta(minutes=idle_minutes))
    return CleanupResult(affected_sessions=affected, idle_minutes=idle_minutes)
