"""AnswerStore — the respondent's answers keyed by question id.

Top-level and nested question ids share one flat namespace.  Navigation
never removes entries, so an answer given on a step that a later branch
skips is still part of the submitted response.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any, Iterator


def is_empty_value(value: Any) -> bool:
    """True for None, whitespace-only strings and empty lists."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


class AnswerStore(MutableMapping):
    """Mutable mapping ``question_id -> raw answer value``.

    Assigning ``None`` removes the entry, matching a cleared input.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, question_id: str) -> Any:
        return self._values[question_id]

    def __setitem__(self, question_id: str, value: Any) -> None:
        if value is None:
            self._values.pop(question_id, None)
            return
        self._values[question_id] = value

    def __delitem__(self, question_id: str) -> None:
        del self._values[question_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AnswerStore({self._values!r})"
