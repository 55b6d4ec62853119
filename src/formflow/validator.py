"""AnswerValidator — checks answers against required/type constraints.

Pure: the caller decides where to store or clear the resulting errors.

Step-level rules:
  - plain question: validate it
  - question-group: validate only the sub-question currently shown
  - multiquestion: validate every sub-question and report all failures
"""

from __future__ import annotations

from typing import Any, Mapping

from formflow.answers import is_empty_value
from formflow.coercion import to_js_string
from formflow.constants import (
    EMAIL_PATTERN,
    INVALID_EMAIL_MESSAGE,
    REQUIRED_FIELD_MESSAGE,
)
from formflow.models.question import FieldQuestion, GroupQuestion, MultiQuestion, QuestionType
from formflow.models.session import FieldError, ValidationErrorCode, ValidationResult


class AnswerValidator:
    """Validates single answers and whole steps."""

    def validate(self, question: FieldQuestion, value: Any) -> ValidationResult:
        """Validate one question's raw answer.

        Required-ness is checked first; the e-mail format is checked only for
        a non-empty value.
        """
        if question.required and is_empty_value(value):
            return ValidationResult(errors=[FieldError(
                question_id=question.id,
                code=ValidationErrorCode.REQUIRED_FIELD_EMPTY,
                message=REQUIRED_FIELD_MESSAGE,
            )])

        if question.question_type == QuestionType.EMAIL and value:
            if not EMAIL_PATTERN.fullmatch(to_js_string(value)):
                return ValidationResult(errors=[FieldError(
                    question_id=question.id,
                    code=ValidationErrorCode.INVALID_EMAIL_FORMAT,
                    message=INVALID_EMAIL_MESSAGE,
                )])

        return ValidationResult()

    def validate_step(
        self,
        question: FieldQuestion | GroupQuestion | MultiQuestion,
        sub_index: int,
        answers: Mapping[str, Any],
    ) -> ValidationResult:
        """Validate everything the respondent sees on the current step."""
        if isinstance(question, MultiQuestion):
            errors: list[FieldError] = []
            for sub in question.questions:
                errors.extend(self.validate(sub, answers.get(sub.id)).errors)
            return ValidationResult(errors=errors)

        if isinstance(question, GroupQuestion):
            if not question.questions:
                return ValidationResult()
            sub = question.questions[sub_index]
            return self.validate(sub, answers.get(sub.id))

        return self.validate(question, answers.get(question.id))
