"""Workflow models: ordered branching rules evaluated at step boundaries.

A workflow is a list of rules read top to bottom; the first rule that
matches *and* yields a navigational action decides where the respondent
goes next.

  - ``if`` rules carry conditions folded strictly left to right
  - ``always`` rules match unconditionally

Actions use ``type`` as their discriminator.  Only ``jumpTo`` and
``endForm`` navigate; the others are carried so that stored definitions
round-trip but are skipped by the resolver.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import Field, field_validator

from formflow.coercion import to_js_string
from formflow.models.question import CamelModel


class Operator(str, enum.Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class LogicalOperator(str, enum.Enum):
    AND = "AND"
    OR = "OR"


class RuleType(str, enum.Enum):
    IF = "if"
    ALWAYS = "always"


class Condition(CamelModel):
    """A single comparison against a recorded answer.

    ``logical_operator`` joins this condition to the result accumulated from
    the conditions before it; it is ignored on the first condition.
    """

    question_id: str
    operator: Operator
    value: str = ""
    logical_operator: Optional[LogicalOperator] = None

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> str:
        # YAML authors write ``value: 5``; the comparison is string-based
        return to_js_string(v)


# --- Actions ---

class JumpToAction(CamelModel):
    """Go to a question, a final screen, or ``end_form``."""

    type: Literal["jumpTo"] = "jumpTo"
    target_question_id: Optional[str] = None


class EndFormAction(CamelModel):
    """Finish the form through the default final screen."""

    type: Literal["endForm"] = "endForm"


class ShowMessageAction(CamelModel):
    type: Literal["showMessage"] = "showMessage"
    message: Optional[str] = None


class RedirectAction(CamelModel):
    type: Literal["redirect"] = "redirect"
    url: Optional[str] = None


class ShowFieldAction(CamelModel):
    type: Literal["showField"] = "showField"
    target_question_id: Optional[str] = None


class HideFieldAction(CamelModel):
    type: Literal["hideField"] = "hideField"
    target_question_id: Optional[str] = None


Action = Annotated[
    Union[
        JumpToAction,
        EndFormAction,
        ShowMessageAction,
        RedirectAction,
        ShowFieldAction,
        HideFieldAction,
    ],
    Field(discriminator="type"),
]


class RuleOperation(CamelModel):
    """Score arithmetic attached to ``always`` rules by the form editor.

    Stored with the rule so definitions round-trip; navigation ignores it.
    """

    type: Literal["add", "subtract", "multiply", "divide"]
    variable: Literal[
        "score", "correct_answers", "max_score",
        "quiz_score", "total_scorable_questions",
    ]
    operand: Union[float, str] = 0


class WorkflowRule(CamelModel):
    """One branching rule: conditions (for ``if``) plus ordered actions."""

    id: str
    type: RuleType
    conditions: Optional[List[Condition]] = None
    actions: List[Action] = []
    operation: Optional[RuleOperation] = None

    @field_validator("actions", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class Workflow(CamelModel):
    rules: List[WorkflowRule] = []
