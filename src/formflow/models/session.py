"""Session and step models — the contract between the engine and callers.

These models describe where a fill session stands and what a renderer needs
to draw the current step.  They never expose the answer store itself.

Step types:
  - WelcomeStep: the form's welcome screen
  - QuestionStep: one step of questions (plain, group sub-question, or a
    whole multiquestion block) with current values and errors
  - FinalStep: a final screen reached by workflow or by the end of the form
  - CompletedStep: terminal; the response was assembled and handed off

The ``StepResult`` union covers all four so callers can dispatch on ``type``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SessionState(str, enum.Enum):
    """Lifecycle states of a fill session.

    Transitions:
        welcome -> question   (advance)
        question -> question  (advance / back, or blocked by validation)
        question -> final     (workflow or end of form, when finals exist)
        question -> completed (end of form without finals)
        final -> completed    (advance)
    """

    WELCOME = "welcome"
    QUESTION = "question"
    FINAL = "final"
    COMPLETED = "completed"


class SubmissionStatus(str, enum.Enum):
    """Hand-off state of the assembled response."""

    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    SUBMITTED = "submitted"
    FAILED = "failed"


class Position(BaseModel):
    """Where the respondent currently is.

    ``index``/``sub_index`` are meaningful only in the ``question`` state;
    ``final_id`` only in the ``final`` state.
    """

    model_config = ConfigDict(frozen=True)

    state: SessionState
    index: int = 0
    sub_index: int = 0
    final_id: Optional[str] = None

    @classmethod
    def welcome(cls) -> Position:
        return cls(state=SessionState.WELCOME)

    @classmethod
    def question(cls, index: int, sub_index: int = 0) -> Position:
        return cls(state=SessionState.QUESTION, index=index, sub_index=sub_index)

    @classmethod
    def final(cls, final_id: str) -> Position:
        return cls(state=SessionState.FINAL, final_id=final_id)

    @classmethod
    def completed(cls) -> Position:
        return cls(state=SessionState.COMPLETED)


# ---------------------------------------------------------------------------
# Navigation targets produced by the resolver
# ---------------------------------------------------------------------------

class NextSubQuestion(BaseModel):
    """Stay inside the current group and show its next sub-question."""

    kind: Literal["next_sub_question"] = "next_sub_question"


class NextLinear(BaseModel):
    """Move to the next top-level question in definition order."""

    kind: Literal["next_linear"] = "next_linear"


class GoToQuestion(BaseModel):
    kind: Literal["go_to_question"] = "go_to_question"
    index: int


class GoToFinal(BaseModel):
    kind: Literal["go_to_final"] = "go_to_final"
    final_id: str


class Submit(BaseModel):
    """End the form without a final screen."""

    kind: Literal["submit"] = "submit"


NavTarget = Annotated[
    Union[NextSubQuestion, NextLinear, GoToQuestion, GoToFinal, Submit],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationErrorCode(str, enum.Enum):
    REQUIRED_FIELD_EMPTY = "RequiredFieldEmpty"
    INVALID_EMAIL_FORMAT = "InvalidEmailFormat"


class FieldError(BaseModel):
    """A validation failure tagged with the question it belongs to."""

    question_id: str
    code: ValidationErrorCode
    message: str


class ValidationResult(BaseModel):
    errors: list[FieldError] = []

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Display payloads
# ---------------------------------------------------------------------------

class QuestionPayload(BaseModel):
    """Flattened question for renderers.

    Strips container internals; a container's sub-questions are rendered
    through ``QuestionStep.questions`` instead.
    """

    id: str
    type: str
    title: str
    description: str | None = None
    required: bool = False
    order: int = 0
    options: list[str] | None = None


class WelcomeStep(BaseModel):
    type: Literal["welcome"] = "welcome"
    title: str
    description: str | None = None
    button_text: str | None = None
    show_button: bool = True
    progress: float = 0.0


class QuestionStep(BaseModel):
    """Engine step: render these questions and wait for answers.

    ``question`` is always the top-level question at ``index``; ``questions``
    is what to render (the plain question, the current group sub-question,
    or every sub-question of a multiquestion block).
    """

    type: Literal["question"] = "question"
    index: int
    sub_index: int = 0
    step_number: int
    total_steps: int
    question: QuestionPayload
    questions: list[QuestionPayload]
    group_title: str | None = None
    # Current answers for the rendered questions, keyed by question id
    values: dict[str, Any] = {}
    errors: dict[str, FieldError] = {}
    progress: float
    can_go_back: bool
    # True when a plain advance from here would end the form
    is_last: bool
    hide_question_number: bool = False
    hide_progress_bar: bool = False


class FinalStep(BaseModel):
    type: Literal["final"] = "final"
    final_id: str
    title: str
    description: str | None = None
    button_text: str | None = None
    show_button: bool = True
    progress: float = 1.0


class CompletedStep(BaseModel):
    """Engine step: terminal; the response was assembled."""

    type: Literal["completed"] = "completed"
    response_id: str | None = None
    submission_status: SubmissionStatus
    submission_error: str | None = None
    progress: float = 1.0


# Callers can match on step.type to dispatch rendering logic.
StepResult = Union[WelcomeStep, QuestionStep, FinalStep, CompletedStep]


class SessionInfo(BaseModel):
    """Public view of a fill session for API consumers."""

    session_id: str
    form_id: str
    state: SessionState
    index: int | None = None
    sub_index: int | None = None
    final_id: str | None = None
    submission_status: SubmissionStatus
    response_id: str | None = None
    created_at: datetime
    updated_at: datetime
