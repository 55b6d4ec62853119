"""Form definition: questions, screens and workflow.

A ``Form`` is supplied fully materialised before a fill session starts and
is never mutated by the engine.  The lookup helpers here are the only way
the engine resolves ids, so "not found" semantics live in one place.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from pydantic import Field, field_validator

from formflow.models.question import CamelModel, FieldQuestion, Question
from formflow.models.workflow import Workflow


class WelcomeScreen(CamelModel):
    """Optional intro screen; its presence makes sessions start at ``welcome``."""

    title: str
    description: Optional[str] = None
    button_text: Optional[str] = None
    show_button: bool = True


class FinalScreen(CamelModel):
    """Terminal display screen shown before the response is submitted."""

    id: str
    title: str = ""
    description: Optional[str] = None
    button_text: Optional[str] = None
    show_button: bool = True


class Form(CamelModel):
    """A publishable form definition.

    ``finals`` is ordered: the first entry is the default destination when
    the form ends without naming a specific final screen.
    """

    id: str
    title: str
    description: Optional[str] = None
    is_published: bool = True
    questions: List[Question] = []
    workflow: Workflow = Field(default_factory=Workflow)
    welcome_screen: Optional[WelcomeScreen] = None
    finals: List[FinalScreen] = []

    # Display flags, passed through to renderers
    hide_form_title: bool = False
    hide_question_number: bool = False
    hide_progress_bar: bool = False

    @field_validator("workflow", mode="before")
    @classmethod
    def _default_workflow(cls, v):
        return {"rules": []} if v is None else v

    @field_validator("finals", "questions", mode="before")
    @classmethod
    def _default_list(cls, v):
        return [] if v is None else v

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    @property
    def default_final(self) -> FinalScreen | None:
        return self.finals[0] if self.finals else None

    def find_question_index(self, question_id: str | None) -> int:
        """Index of a *top-level* question, or -1 if not found."""
        if not question_id:
            return -1
        for idx, q in enumerate(self.questions):
            if q.id == question_id:
                return idx
        return -1

    def find_final(self, final_id: str | None) -> FinalScreen | None:
        if not final_id:
            return None
        for final in self.finals:
            if final.id == final_id:
                return final
        return None

    def iter_questions(self) -> Iterator[Question | FieldQuestion]:
        """Yield every question in definition order, containers expanded.

        A container is yielded before its sub-questions.
        """
        for q in self.questions:
            yield q
            if q.is_container:
                yield from q.questions

    def get_question(self, question_id: str) -> Question | FieldQuestion:
        """Look up any question (top-level or nested) by id.

        Raises:
            KeyError: if no question has that id.
        """
        for q in self.iter_questions():
            if q.id == question_id:
                return q
        raise KeyError(f"Question not found: {question_id}")
