"""FormSession — the per-respondent state machine.

States::

    welcome ──► question(i, g) ──► final(id) ──► completed
                   │    ▲                            ▲
                   └────┘ (advance / back)           │
                   └─────────────────────────────────┘ (end without finals)

``welcome`` is the initial state only when the form has a welcome screen;
otherwise a session starts at ``question(0, 0)``.

Back navigation uses a history of presented positions, so ``back`` after a
workflow jump returns to the step the respondent actually came from.  When
the history is empty (e.g. a freshly created session) the structural rule
applies: previous sub-question, else the previous top-level question (its
last sub-question when it is a group), else the welcome screen.

The session holds all of its state in memory and performs no I/O.  Reaching
``completed`` assembles the :class:`Response`; handing it to a persistence
collaborator is the caller's job (see :class:`formflow.engine.FormEngine`).
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from formflow.answers import AnswerStore
from formflow.assembler import ResponseAssembler
from formflow.models.form import Form
from formflow.models.question import FieldQuestion, GroupQuestion, MultiQuestion
from formflow.models.response import Answer, Response
from formflow.models.session import (
    CompletedStep,
    FieldError,
    FinalStep,
    GoToFinal,
    GoToQuestion,
    NavTarget,
    NextLinear,
    NextSubQuestion,
    Position,
    QuestionPayload,
    QuestionStep,
    SessionInfo,
    SessionState,
    StepResult,
    Submit,
    SubmissionStatus,
    WelcomeStep,
)
from formflow.resolver import NavigationResolver
from formflow.validator import AnswerValidator

logger = logging.getLogger(__name__)


def question_units(question: FieldQuestion | GroupQuestion | MultiQuestion) -> int:
    """Progress units a top-level question contributes.

    Containers count each sub-question individually (at least one unit).
    """
    if isinstance(question, (GroupQuestion, MultiQuestion)):
        return max(len(question.questions), 1)
    return 1


class FormSession:
    """One respondent filling one form.

    Args:
        form: the form definition; must contain at least one question
        session_id: identifier used by registries (random hex by default)
        validator: answer validator (a fresh one by default)
        resolver: navigation resolver (a fresh one by default)
        assembler: response assembler (a fresh one by default)

    Raises:
        ValueError: if the form has no top-level questions.
    """

    def __init__(
        self,
        form: Form,
        *,
        session_id: str | None = None,
        validator: AnswerValidator | None = None,
        resolver: NavigationResolver | None = None,
        assembler: ResponseAssembler | None = None,
    ) -> None:
        if not form.questions:
            raise ValueError(f"Form '{form.id}' has no questions")

        self.form = form
        self.session_id = session_id or uuid.uuid4().hex
        self.answers = AnswerStore()
        self.errors: dict[str, FieldError] = {}

        self._validator = validator or AnswerValidator()
        self._resolver = resolver or NavigationResolver()
        self._assembler = assembler or ResponseAssembler()

        self._history: list[Position] = []
        self.position = (
            Position.welcome() if form.welcome_screen is not None else Position.question(0)
        )

        self.response: Response | None = None
        self.submission_status = SubmissionStatus.NOT_SUBMITTED
        self.submission_error: str | None = None
        self.response_id: str | None = None

        self.created_at = datetime.now(timezone.utc)
        self.updated_at = self.created_at

    # ==================================================================
    # Properties
    # ==================================================================

    @property
    def state(self) -> SessionState:
        return self.position.state

    @property
    def is_completed(self) -> bool:
        return self.position.state == SessionState.COMPLETED

    @property
    def history(self) -> list[Position]:
        """Positions presented before the current one, oldest first."""
        return list(self._history)

    def current_question(self) -> FieldQuestion | GroupQuestion | MultiQuestion | None:
        """Top-level question at the current position, or None off-question."""
        if self.position.state != SessionState.QUESTION:
            return None
        return self.form.questions[self.position.index]

    def step_questions(self) -> list[FieldQuestion]:
        """The leaf questions rendered on the current step."""
        question = self.current_question()
        if question is None:
            return []
        if isinstance(question, MultiQuestion):
            return list(question.questions)
        if isinstance(question, GroupQuestion):
            if not question.questions:
                return []
            return [question.questions[self.position.sub_index]]
        return [question]

    # ==================================================================
    # Answer input
    # ==================================================================

    def set_answer(self, question_id: str, value: Any) -> None:
        """Record an answer for a question shown on the current step.

        ``None`` clears the answer.  Any error stored for the question is
        cleared as soon as it receives a new value.

        Raises:
            ValueError: if the question is unknown, not on the current step,
                or the value is not a string, a list of strings or a number.
        """
        self.set_answers({question_id: value})

    def set_answers(self, answers: dict[str, Any]) -> None:
        """Record several answers for the current step at once.

        Every entry is checked before any is stored, so a rejected batch
        leaves the answer store unchanged.

        Raises:
            ValueError: as for :meth:`set_answer`.
        """
        step_ids = {q.id for q in self.step_questions()}
        for question_id, value in answers.items():
            self._check_answer(question_id, value, step_ids)

        for question_id, value in answers.items():
            self.answers[question_id] = value
            self.errors.pop(question_id, None)
        self._touch()

    def _check_answer(self, question_id: str, value: Any, step_ids: set[str]) -> None:
        try:
            self.form.get_question(question_id)
        except KeyError:
            raise ValueError(f"Question not found: {question_id}") from None

        if question_id not in step_ids:
            raise ValueError(f"Question '{question_id}' is not on the current step")

        if value is None or isinstance(value, str):
            return
        # bool is an int subclass but never a valid answer
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return
        raise ValueError(
            f"Answer for '{question_id}' must be a string, a list of strings "
            f"or a number, got {type(value).__name__}"
        )

    # ==================================================================
    # Navigation
    # ==================================================================

    def advance(self) -> StepResult:
        """Move forward from the current step.

        Question steps are gated by validation: on failure the errors are
        recorded and the position does not change.

        Raises:
            ValueError: if the session is already completed.
        """
        state = self.position.state

        if state == SessionState.COMPLETED:
            raise ValueError(f"Session '{self.session_id}' is already completed")

        if state == SessionState.WELCOME:
            self._move_to(Position.question(0))
            return self.current_step()

        if state == SessionState.FINAL:
            self._complete()
            return self.current_step()

        # --- Question state: validation gate ---
        question = self.current_question()
        result = self._validator.validate_step(question, self.position.sub_index, self.answers)
        for sub in self.step_questions():
            self.errors.pop(sub.id, None)
        if not result.ok:
            for error in result.errors:
                self.errors[error.question_id] = error
            logger.debug(
                "session %s blocked at %s: %d validation error(s)",
                self.session_id, question.id, len(result.errors),
            )
            self._touch()
            return self.current_step()

        target = self._resolver.resolve_next(self.form, self.answers, self.position)
        self._apply_target(target)
        return self.current_step()

    def back(self) -> StepResult:
        """Return to the previously presented step.

        Answers are retained.  Back from ``completed`` and from the very
        first step is a no-op.
        """
        state = self.position.state
        if state == SessionState.COMPLETED:
            return self.current_step()

        if self._history:
            self.position = self._history.pop()
            self._touch()
            return self.current_step()

        previous = self._structural_previous()
        if previous is not None:
            self.position = previous
            self._touch()
        return self.current_step()

    def can_go_back(self) -> bool:
        if self.position.state == SessionState.COMPLETED:
            return False
        return bool(self._history) or self._structural_previous() is not None

    def _structural_previous(self) -> Position | None:
        """Previous position derived from form structure alone."""
        pos = self.position

        if pos.state == SessionState.FINAL:
            last = len(self.form.questions) - 1
            return Position.question(last, self._last_sub_index(last))

        if pos.state != SessionState.QUESTION:
            return None

        if pos.sub_index > 0:
            return Position.question(pos.index, pos.sub_index - 1)
        if pos.index > 0:
            prev = pos.index - 1
            return Position.question(prev, self._last_sub_index(prev))
        if self.form.welcome_screen is not None:
            return Position.welcome()
        return None

    def _last_sub_index(self, index: int) -> int:
        question = self.form.questions[index]
        if isinstance(question, GroupQuestion) and question.questions:
            return len(question.questions) - 1
        return 0

    def _apply_target(self, target: NavTarget) -> None:
        pos = self.position

        if isinstance(target, NextSubQuestion):
            self._move_to(Position.question(pos.index, pos.sub_index + 1))
        elif isinstance(target, NextLinear):
            self._move_to(Position.question(pos.index + 1))
        elif isinstance(target, GoToQuestion):
            self._move_to(Position.question(target.index))
        elif isinstance(target, GoToFinal):
            self._move_to(Position.final(target.final_id))
        elif isinstance(target, Submit):
            self._complete()
        else:
            raise ValueError(f"Unknown navigation target: {target!r}")

    def _move_to(self, position: Position) -> None:
        self._history.append(self.position)
        self.position = position
        self._touch()

    def _complete(self) -> None:
        """Assemble the response and enter the terminal state."""
        self.response = self._assembler.assemble(
            self.form,
            self.answers,
            response_id=uuid.uuid4().hex,
            now=datetime.now(timezone.utc),
        )
        self.position = Position.completed()
        self.submission_status = SubmissionStatus.PENDING
        self._touch()
        logger.info(
            "session %s completed form %s with %d answer(s)",
            self.session_id, self.form.id, len(self.response.answers),
        )

    # ==================================================================
    # Submission bookkeeping
    # ==================================================================

    def mark_submitted(self, response_id: str) -> None:
        self.submission_status = SubmissionStatus.SUBMITTED
        self.submission_error = None
        self.response_id = response_id
        self._touch()

    def mark_failed(self, error: str) -> None:
        self.submission_status = SubmissionStatus.FAILED
        self.submission_error = error
        self._touch()

    # ==================================================================
    # Display
    # ==================================================================

    def progress(self) -> float:
        """Fraction of steps completed, sub-questions counted individually."""
        pos = self.position
        if pos.state == SessionState.WELCOME:
            return 0.0
        if pos.state in (SessionState.FINAL, SessionState.COMPLETED):
            return 1.0
        total = sum(question_units(q) for q in self.form.questions)
        return self._units_before(pos) / total

    def _units_before(self, pos: Position) -> int:
        done = sum(question_units(q) for q in self.form.questions[:pos.index])
        if isinstance(self.form.questions[pos.index], GroupQuestion):
            done += pos.sub_index
        return done

    def current_step(self) -> StepResult:
        """Everything a renderer needs to draw the current state."""
        pos = self.position

        if pos.state == SessionState.WELCOME:
            screen = self.form.welcome_screen
            return WelcomeStep(
                title=screen.title,
                description=screen.description,
                button_text=screen.button_text,
                show_button=screen.show_button,
            )

        if pos.state == SessionState.FINAL:
            final = self.form.find_final(pos.final_id)
            return FinalStep(
                final_id=final.id,
                title=final.title,
                description=final.description,
                button_text=final.button_text,
                show_button=final.show_button,
            )

        if pos.state == SessionState.COMPLETED:
            return CompletedStep(
                response_id=self.response_id,
                submission_status=self.submission_status,
                submission_error=self.submission_error,
            )

        return self._build_question_step()

    def _build_question_step(self) -> QuestionStep:
        pos = self.position
        question = self.current_question()
        rendered = self.step_questions()
        total = sum(question_units(q) for q in self.form.questions)
        done = self._units_before(pos)

        is_last = pos.index == len(self.form.questions) - 1
        if isinstance(question, GroupQuestion) and pos.sub_index < len(question.questions) - 1:
            is_last = False

        return QuestionStep(
            index=pos.index,
            sub_index=pos.sub_index,
            step_number=done + 1,
            total_steps=total,
            question=self._to_payload(question),
            questions=[self._to_payload(q) for q in rendered],
            group_title=question.title if question.is_container else None,
            values={q.id: self.answers[q.id] for q in rendered if q.id in self.answers},
            errors={q.id: self.errors[q.id] for q in rendered if q.id in self.errors},
            progress=done / total,
            can_go_back=self.can_go_back(),
            is_last=is_last,
            hide_question_number=self.form.hide_question_number,
            hide_progress_bar=self.form.hide_progress_bar,
        )

    @staticmethod
    def _to_payload(question: FieldQuestion | GroupQuestion | MultiQuestion) -> QuestionPayload:
        """Convert a question model to a flat QuestionPayload."""
        return QuestionPayload(
            id=question.id,
            type=question.question_type.value,
            title=question.title,
            description=question.description,
            required=question.required,
            order=question.order,
            options=getattr(question, "options", None),
        )

    def recorded_answers(self) -> list[Answer]:
        """Answers recorded so far, in form-definition order."""
        return self._assembler.collect(self.form, self.answers)

    def to_info(self) -> SessionInfo:
        """Public SessionInfo view of this session."""
        pos = self.position
        in_question = pos.state == SessionState.QUESTION
        return SessionInfo(
            session_id=self.session_id,
            form_id=self.form.id,
            state=pos.state,
            index=pos.index if in_question else None,
            sub_index=pos.sub_index if in_question else None,
            final_id=pos.final_id,
            submission_status=self.submission_status,
            response_id=self.response_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
