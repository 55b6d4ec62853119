"""NavigationResolver — decides where an ``advance`` takes the respondent.

Precedence, evaluated in this order:

  1. Inside a question-group, before its last sub-question: step to the
     next sub-question.  Workflow rules are not consulted.
  2. A multiquestion block is one step; its sub-questions are never branch
     targets, so leaving the block is always a step boundary.
  3. At a step boundary: walk the workflow rules top to bottom.  A matching
     rule's actions are scanned in order and the first *actionable*
     navigation wins.  A matching rule that yields nothing actionable does
     not stop the walk.
  4. Nothing navigated: fall back to definition order, ending the form after
     the last top-level question.

A jump that cannot be resolved (unknown id, nested sub-question id, empty
target) or that points at the current top-level question is not
actionable; the walk continues so that a malformed workflow degrades to
linear flow instead of stranding the respondent.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from formflow.constants import END_FORM_TARGET
from formflow.evaluator import RuleEvaluator
from formflow.models.form import Form
from formflow.models.question import GroupQuestion
from formflow.models.session import (
    GoToFinal,
    GoToQuestion,
    NavTarget,
    NextLinear,
    NextSubQuestion,
    Position,
    SessionState,
    Submit,
)
from formflow.models.workflow import (
    EndFormAction,
    JumpToAction,
    RuleType,
    WorkflowRule,
)

logger = logging.getLogger(__name__)


class NavigationResolver:
    """Resolves the next navigation target from the current position.

    Args:
        evaluator: rule evaluator to use (a fresh one by default)
    """

    def __init__(self, evaluator: RuleEvaluator | None = None) -> None:
        self._evaluator = evaluator or RuleEvaluator()

    def resolve_next(
        self,
        form: Form,
        answers: Mapping[str, Any],
        position: Position,
    ) -> NavTarget:
        """Return the target for leaving ``position`` (a question position).

        Raises:
            ValueError: if ``position`` is not a question position.
        """
        if position.state != SessionState.QUESTION:
            raise ValueError(
                f"Cannot resolve navigation from state '{position.state.value}'"
            )

        current = form.questions[position.index]

        # --- Tier 1: intra-group stepping ---
        if isinstance(current, GroupQuestion):
            if position.sub_index < len(current.questions) - 1:
                return NextSubQuestion()

        # --- Tier 3: workflow rules at the step boundary ---
        target = self._resolve_from_workflow(form, answers, position.index)
        if target is not None:
            return target

        # --- Tier 4: linear fallback ---
        if position.index >= len(form.questions) - 1:
            return self.end_target(form)
        return NextLinear()

    @staticmethod
    def end_target(form: Form) -> NavTarget:
        """Where "end the form" leads: the default final, else submission."""
        default_final = form.default_final
        if default_final is not None:
            return GoToFinal(final_id=default_final.id)
        return Submit()

    # ------------------------------------------------------------------
    # Workflow walk
    # ------------------------------------------------------------------

    def _resolve_from_workflow(
        self,
        form: Form,
        answers: Mapping[str, Any],
        current_index: int,
    ) -> NavTarget | None:
        """First actionable navigation among matching rules, or None."""
        for rule in form.workflow.rules:
            if rule.type == RuleType.IF and not self._evaluator.evaluate(rule, answers):
                continue

            target = self._first_navigation(form, rule, current_index)
            if target is not None:
                logger.debug("rule %s navigates to %s", rule.id, target)
                return target
        return None

    def _first_navigation(
        self,
        form: Form,
        rule: WorkflowRule,
        current_index: int,
    ) -> NavTarget | None:
        """Scan a matched rule's actions; return the first actionable one."""
        for action in rule.actions:
            if isinstance(action, EndFormAction):
                return self.end_target(form)

            if isinstance(action, JumpToAction):
                target = self._resolve_jump(form, action.target_question_id, current_index)
                if target is not None:
                    return target
                continue

            # showMessage, redirect, showField, hideField: not navigational
        return None

    def _resolve_jump(
        self,
        form: Form,
        target_id: str | None,
        current_index: int,
    ) -> NavTarget | None:
        """Resolve a jumpTo target id; None when not actionable."""
        if target_id == END_FORM_TARGET:
            return self.end_target(form)

        final = form.find_final(target_id)
        if final is not None:
            return GoToFinal(final_id=final.id)

        idx = form.find_question_index(target_id)
        if idx < 0:
            logger.debug("jumpTo target %r not found in form %s", target_id, form.id)
            return None
        if idx == current_index:
            logger.debug("jumpTo target %r is the current question, ignoring", target_id)
            return None
        return GoToQuestion(index=idx)
