"""Answer and Response models — the payload handed to persistence."""

from __future__ import annotations

from datetime import datetime
from typing import List, Union

from formflow.models.question import CamelModel

# Raw answer value as entered by the respondent.
AnswerValue = Union[str, List[str], int, float]


class Answer(CamelModel):
    """One recorded answer; ``value`` is never null."""

    question_id: str
    value: AnswerValue


class Response(CamelModel):
    """The submitted artifact, answers in form-definition order."""

    id: str
    form_id: str
    submitted_at: datetime
    answers: List[Answer]
