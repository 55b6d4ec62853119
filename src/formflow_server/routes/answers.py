"""Answer and response endpoints — inspect answers, fetch the response, retry.

``GET /answers`` works at any point in the session and returns what has
been answered so far, in form order.  The response only exists once the
session is completed.
"""

from fastapi import APIRouter, Depends

from formflow.engine import FormEngine
from formflow.models.response import Answer, Response
from formflow.models.session import StepResult

from formflow_server.dependencies import get_engine

router = APIRouter(tags=["answers"])


@router.get("/sessions/{session_id}/answers")
async def get_answers(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> list[Answer]:
    """Return the answers recorded so far (camelCase, form order)."""
    return await engine.get_answers(session_id)


@router.get("/sessions/{session_id}/response")
async def get_response(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> Response:
    """Return the assembled response of a completed session.

    Raises 409 while the session is still in progress.
    """
    return await engine.get_response(session_id)


@router.post("/sessions/{session_id}/submission")
async def retry_submission(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> StepResult:
    """Retry handing the response to the sink after a failed submission.

    A response that was already accepted is not sent again.  Raises 409
    while the session is still in progress.
    """
    return await engine.retry_submission(session_id)
