"""FormEngine — the async orchestrator callers talk to.

The engine owns a :class:`SessionRegistry` of in-memory fill sessions and a
:class:`ResponseSink` for persistence.  Each call looks the session up by
id, drives its state machine, and returns the resulting step.  The only
I/O happens when a session reaches ``completed``: the assembled response is
handed to the sink, and a failure there is recorded on the session instead
of being raised, so the respondent can retry.

Usage::

    store = FormStore()
    store.load()
    engine = FormEngine(store, sink=MySink())

    info = await engine.create_session("customer-feedback")
    step = await engine.get_current_step(info.session_id)
    step = await engine.submit_step(info.session_id, {"name": "Ada"})
    # ... until step.type == "completed"
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from formflow.interfaces import ResponseSink
from formflow.models.response import Answer, Response
from formflow.models.session import (
    SessionInfo,
    SessionState,
    StepResult,
    SubmissionStatus,
)
from formflow.registry import SessionRegistry
from formflow.session import FormSession
from formflow.store import FormStore

logger = logging.getLogger(__name__)


class FormEngine:
    """Orchestrates fill sessions over the forms of a :class:`FormStore`.

    Args:
        store: a loaded :class:`FormStore` instance
        sink: persistence collaborator that receives completed responses
        registry: session registry (a fresh in-memory one by default)
    """

    def __init__(
        self,
        store: FormStore,
        sink: ResponseSink,
        registry: SessionRegistry | None = None,
    ) -> None:
        self._store = store
        self._sink = sink
        self._registry = registry if registry is not None else SessionRegistry()

    @property
    def store(self) -> FormStore:
        return self._store

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def create_session(
        self,
        form_id: str,
        *,
        session_id: str | None = None,
    ) -> SessionInfo:
        """Start a new fill session for a published form.

        Raises:
            ValueError: if the form is not found or the session id is taken.
        """
        try:
            form = self._store.get_form(form_id)
        except KeyError:
            raise ValueError(f"Form not found: {form_id}") from None

        session = self._registry.add(FormSession(form, session_id=session_id))
        logger.info("Created session %s for form %s", session.session_id, form_id)
        return session.to_info()

    async def get_session(self, session_id: str) -> SessionInfo | None:
        """Fetch session info by id.  Returns None if not found."""
        session = self._registry.get(session_id)
        if session is None:
            return None
        return session.to_info()

    async def list_sessions(
        self,
        *,
        form_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[SessionInfo]:
        """List sessions, most recent first."""
        sessions = self._registry.list_sessions(form_id=form_id, limit=limit, offset=offset)
        return [s.to_info() for s in sessions]

    async def delete_session(self, session_id: str) -> None:
        """Discard a session and its answers.

        Raises:
            ValueError: if the session is not found.
        """
        if not self._registry.remove(session_id):
            raise ValueError(f"Session not found: {session_id}")
        logger.info("Deleted session %s", session_id)

    async def purge_idle_sessions(self, max_idle: timedelta) -> int:
        """Drop sessions idle for longer than ``max_idle``."""
        return self._registry.purge_idle(max_idle)

    # ==================================================================
    # Step API
    # ==================================================================

    async def get_current_step(self, session_id: str) -> StepResult:
        """Return the current step.  Read-only."""
        return self._load_session(session_id).current_step()

    async def set_answer(self, session_id: str, question_id: str, value: Any) -> StepResult:
        """Record one answer on the current step and return the refreshed step."""
        session = self._load_session(session_id)
        session.set_answer(question_id, value)
        return session.current_step()

    async def submit_step(self, session_id: str, answers: dict[str, Any]) -> StepResult:
        """Record a batch of answers for the current step, then advance.

        The batch is all-or-nothing: if any entry is rejected, none is stored.
        """
        session = self._load_session(session_id)
        session.set_answers(answers)
        return await self._advance(session)

    async def advance(self, session_id: str) -> StepResult:
        """Advance without recording new answers."""
        return await self._advance(self._load_session(session_id))

    async def step_back(self, session_id: str) -> StepResult:
        """Go back to the previously presented step."""
        return self._load_session(session_id).back()

    # ==================================================================
    # Answers & response
    # ==================================================================

    async def get_answers(self, session_id: str) -> list[Answer]:
        """Answers recorded so far, in form-definition order."""
        return self._load_session(session_id).recorded_answers()

    async def get_response(self, session_id: str) -> Response:
        """The assembled response of a completed session.

        Raises:
            ValueError: if the session is not found or not completed yet.
        """
        session = self._load_session(session_id)
        if session.response is None:
            raise ValueError(f"Session '{session_id}' has no response yet")
        return session.response

    async def retry_submission(self, session_id: str) -> StepResult:
        """Hand a completed session's response to the sink again.

        A session whose response was already accepted is left untouched.

        Raises:
            ValueError: if the session is not found or not completed yet.
        """
        session = self._load_session(session_id)
        if session.state != SessionState.COMPLETED:
            raise ValueError(
                f"Cannot retry submission: session '{session_id}' is in state "
                f"'{session.state.value}', expected 'completed'"
            )
        if session.submission_status != SubmissionStatus.SUBMITTED:
            await self._submit(session)
        return session.current_step()

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _load_session(self, session_id: str) -> FormSession:
        """Look a session up or raise ValueError if not found."""
        session = self._registry.get(session_id)
        if session is None:
            raise ValueError(f"Session not found: {session_id}")
        return session

    async def _advance(self, session: FormSession) -> StepResult:
        was_completed = session.is_completed
        step = session.advance()
        if session.is_completed and not was_completed:
            await self._submit(session)
            step = session.current_step()
        return step

    async def _submit(self, session: FormSession) -> None:
        """Send the session's response to the sink and record the outcome."""
        session.submission_status = SubmissionStatus.PENDING
        try:
            response_id = await self._sink.submit(session.response)
        except Exception as exc:
            logger.exception(
                "Submitting response %s of session %s failed",
                session.response.id, session.session_id,
            )
            session.mark_failed(str(exc) or type(exc).__name__)
            return

        session.mark_submitted(response_id)
        logger.info(
            "Submitted response %s of session %s (stored as %s)",
            session.response.id, session.session_id, response_id,
        )
