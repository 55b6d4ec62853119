"""RuleEvaluator — decides whether an ``if`` rule's conditions hold.

Conditions are folded strictly left to right: the first condition seeds the
accumulator and each later condition joins it with its own logical
operator (AND when unset).  There is no precedence and no grouping, so
``[C1 AND C2 OR C3]`` means ``((C1 AND C2) OR C3)``.

Comparisons follow the browser client the forms were authored for:
  - equals / not_equals: exact string (in)equality
  - contains / not_contains: substring tests on the stringified answer
  - greater_than / less_than: numeric, NaN compares false

An absent answer is compared as the empty string.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from formflow.coercion import to_js_number, to_js_string
from formflow.models.workflow import Condition, LogicalOperator, Operator, WorkflowRule

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """Evaluates workflow rule conditions against recorded answers."""

    def evaluate(self, rule: WorkflowRule, answers: Mapping[str, Any]) -> bool:
        """Return True if the rule's condition set holds.

        An ``if`` rule without conditions never matches.  ``always`` rules
        are matched by the resolver without calling this method.
        """
        if not rule.conditions:
            return False

        result = False
        for idx, cond in enumerate(rule.conditions):
            cmp = self._eval_condition(cond, answers)
            if idx == 0:
                result = cmp
            elif (cond.logical_operator or LogicalOperator.AND) == LogicalOperator.AND:
                result = result and cmp
            else:
                result = result or cmp

        logger.debug("rule %s evaluated to %s", rule.id, result)
        return result

    def _eval_condition(self, cond: Condition, answers: Mapping[str, Any]) -> bool:
        """Evaluate one condition against the answers mapping."""
        return self._compare(cond.operator, answers.get(cond.question_id), cond.value)

    @staticmethod
    def _compare(op: Operator, answer: Any, value: Any) -> bool:
        """Apply an operator to a raw answer and a condition literal."""
        ans_str = to_js_string(answer)
        val_str = to_js_string(value)

        if op == Operator.EQUALS:
            return ans_str == val_str
        if op == Operator.NOT_EQUALS:
            return ans_str != val_str
        if op == Operator.CONTAINS:
            return val_str in ans_str
        if op == Operator.NOT_CONTAINS:
            return val_str not in ans_str

        # --- Numeric comparisons (NaN on either side is always False) ---
        if op == Operator.GREATER_THAN:
            return to_js_number(ans_str) > to_js_number(val_str)
        if op == Operator.LESS_THAN:
            return to_js_number(ans_str) < to_js_number(val_str)

        logger.warning("Unknown condition operator: %s", op)
        return False
