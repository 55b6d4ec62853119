"""Question models for form definitions.

Each question type maps to a specific UI component and answer handling logic:

  Leaf questions (rendered as a single input):
    - short-text: single-line text input
    - long-text: multi-line text input
    - multiple-choice: pick one of ``options``
    - email: text input validated against ``local@domain.tld``
    - number: numeric input
    - date: date picker
    - rating: 1-5 star rating

  Containers (hold one level of leaf questions):
    - question-group: sub-questions are shown one at a time, in order
    - multiquestion: all sub-questions are shown and validated together

Nesting is enforced structurally: containers hold ``FieldQuestion`` objects,
and ``FieldQuestion`` has no ``questions`` attribute, so a group inside a
group cannot be built.

The discriminated ``Question`` union uses ``type`` as its discriminator.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class QuestionType(str, enum.Enum):
    """Closed set of question types understood by the engine."""

    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    MULTIPLE_CHOICE = "multiple-choice"
    EMAIL = "email"
    NUMBER = "number"
    DATE = "date"
    RATING = "rating"
    QUESTION_GROUP = "question-group"
    MULTIQUESTION = "multiquestion"


# Container types: the only variants that carry nested questions.
CONTAINER_TYPES: frozenset[QuestionType] = frozenset(
    {QuestionType.QUESTION_GROUP, QuestionType.MULTIQUESTION}
)


class CamelModel(BaseModel):
    """Base for models whose wire format is camelCase JSON.

    Python code uses snake_case attributes; input accepts either spelling
    and ``model_dump(by_alias=True)`` produces camelCase.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Base question type ---

class BaseQuestion(CamelModel):
    """Fields shared by all question types."""

    id: str
    title: str
    description: Optional[str] = None
    required: bool = False
    order: int = 0

    @property
    def question_type(self) -> QuestionType:
        return QuestionType(self.type)

    @property
    def is_container(self) -> bool:
        return self.question_type in CONTAINER_TYPES


# --- Leaf question ---

class FieldQuestion(BaseQuestion):
    """A single input; the only kind of question a container may hold."""

    type: Literal[
        "short-text", "long-text", "multiple-choice",
        "email", "number", "date", "rating",
    ]
    options: Optional[List[str]] = None

    @model_validator(mode="before")
    @classmethod
    def _no_nested_questions(cls, data: Any) -> Any:
        # Stored definitions carry ``questions: null`` on every leaf; only a
        # non-empty list is an error.
        if isinstance(data, dict) and "questions" in data:
            if data["questions"]:
                raise ValueError(
                    f"question {data.get('id')!r} of type {data.get('type')!r} "
                    "cannot hold nested questions"
                )
            data = {k: v for k, v in data.items() if k != "questions"}
        return data


# --- Containers ---

class GroupQuestion(BaseQuestion):
    """Sub-questions navigated one at a time, each validated on its own."""

    type: Literal["question-group"] = "question-group"
    questions: List[FieldQuestion] = []


class MultiQuestion(BaseQuestion):
    """Sub-questions shown together and validated together as one step."""

    type: Literal["multiquestion"] = "multiquestion"
    questions: List[FieldQuestion] = []


ContainerQuestion = Union[GroupQuestion, MultiQuestion]

# --- Discriminated union of all top-level question types ---

Question = Annotated[
    Union[FieldQuestion, GroupQuestion, MultiQuestion],
    Field(discriminator="type"),
]
