"""Step endpoints — read the current step, answer, advance and go back.

The response shape depends on the session state (dispatch on ``type``):
  - ``welcome``: the welcome screen
  - ``question``: questions to render with current values and errors
  - ``final``: a final screen
  - ``completed``: terminal, with the submission status

A failed validation is not an HTTP error: the returned ``question`` step
carries the errors and the session stays where it was.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from formflow.engine import FormEngine
from formflow.models.session import StepResult

from formflow_server.dependencies import get_engine

router = APIRouter(tags=["steps"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class SubmitStepRequest(BaseModel):
    """Body for POST /sessions/{session_id}/step.

    ``answers`` maps question ids on the current step to values; it may be
    empty (e.g. to leave a welcome or final screen).
    """
    answers: dict[str, Any] = {}


class SetAnswerRequest(BaseModel):
    """Body for PUT /sessions/{session_id}/answers/{question_id}."""
    value: Any = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/sessions/{session_id}/step")
async def get_current_step(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> StepResult:
    """Return the current step for the session."""
    return await engine.get_current_step(session_id)


@router.post("/sessions/{session_id}/step")
async def submit_step(
    session_id: str,
    body: SubmitStepRequest,
    engine: FormEngine = Depends(get_engine),
) -> StepResult:
    """Record the answers for the current step and advance.

    Returns the next step, or the same ``question`` step with errors when
    validation fails.  Advancing a completed session answers 409.
    """
    return await engine.submit_step(session_id, body.answers)


@router.put("/sessions/{session_id}/answers/{question_id}")
async def set_answer(
    session_id: str,
    question_id: str,
    body: SetAnswerRequest,
    engine: FormEngine = Depends(get_engine),
) -> StepResult:
    """Record a single answer without advancing; ``null`` clears it.

    Returns 400 if the question is not on the current step.
    """
    return await engine.set_answer(session_id, question_id, body.value)


@router.post("/sessions/{session_id}/back")
async def step_back(
    session_id: str,
    engine: FormEngine = Depends(get_engine),
) -> StepResult:
    """Return to the previously presented step.  Answers are kept."""
    return await engine.step_back(session_id)
