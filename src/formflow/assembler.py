"""ResponseAssembler — builds the submitted payload from the answer store.

The walk follows form-definition order, not visit order, so answers given
on steps a later branch skipped are still included.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from formflow.models.form import Form
from formflow.models.response import Answer, Response


class ResponseAssembler:
    """Collects recorded answers into a :class:`Response`."""

    def collect(self, form: Form, answers: Mapping[str, Any]) -> list[Answer]:
        """Non-empty answers in definition order, containers expanded."""
        collected: list[Answer] = []
        for question in form.iter_questions():
            # Container ids never carry an answer of their own
            if question.is_container:
                continue
            value = answers.get(question.id)
            if value is None or value == "" or value == []:
                continue
            collected.append(Answer(question_id=question.id, value=value))
        return collected

    def assemble(
        self,
        form: Form,
        answers: Mapping[str, Any],
        response_id: str,
        now: datetime,
    ) -> Response:
        return Response(
            id=response_id,
            form_id=form.id,
            submitted_at=now,
            answers=self.collect(form, answers),
        )
