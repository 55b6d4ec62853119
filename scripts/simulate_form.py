#!/usr/bin/env python3
"""Simulate filling a form end-to-end, in process, with mock answers.

Drives a FormEngine session from the first screen to completion, printing
every step shown, the mock answer chosen, validation errors and where the
workflow sent the respondent.  The response is handed to a sink that
prints it instead of storing it.

By default answers are **randomised** (``--random``, on by default) so each
run explores a different path through the workflow.  Use ``--no-random``
for a deterministic run, and ``--skip-rate`` to leave optional questions
unanswered.

Usage::

    # Default run (customer-feedback, random answers)
    python scripts/simulate_form.py

    # Deterministic run of another form
    python scripts/simulate_form.py -f newsletter-signup --no-random

    # List available forms
    python scripts/simulate_form.py --list-forms

    # Reproducible random run
    python scripts/simulate_form.py --seed 42
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Ensure src/ is on sys.path so the script runs from a plain checkout.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from formflow.engine import FormEngine  # noqa: E402
from formflow.interfaces import ResponseSink  # noqa: E402
from formflow.models.response import Response  # noqa: E402
from formflow.models.session import (  # noqa: E402
    CompletedStep,
    FinalStep,
    QuestionPayload,
    QuestionStep,
    WelcomeStep,
)
from formflow.store import FormStore  # noqa: E402

# ---------------------------------------------------------------------------
# Constants for the simulation
# ---------------------------------------------------------------------------

SESSION_ID = "sim_session"
_DEFAULT_FORM = "customer-feedback"
# Safety net against a workflow that loops forever between questions
_MAX_STEPS = 200

_RANDOM_TEXT_POOL = [
    "Ada Lovelace",
    "Quick and friendly service",
    "skip",
    "The queue was long",
    "",
]
_RANDOM_EMAIL_POOL = [
    "ada@example.org",
    "grace@example.com",
    "not-an-email",
]


# ---------------------------------------------------------------------------
# Printing sink
# ---------------------------------------------------------------------------


class PrintingSink(ResponseSink):
    """Prints the response instead of persisting it."""

    def __init__(self, fail_first: bool = False) -> None:
        self._fail_next = fail_first

    async def submit(self, response: Response) -> str:
        if self._fail_next:
            self._fail_next = False
            raise ConnectionError("simulated storage outage")
        _print("\n Submitted response:")
        _print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
        return response.id


# ---------------------------------------------------------------------------
# Mock answer generation
# ---------------------------------------------------------------------------

# Module-level flags toggled by CLI args
_random_mode = True
_skip_rate = 0.0
_quiet = False


def _print(*args, **kwargs) -> None:
    """Print wrapper that respects the --quiet flag."""
    if not _quiet:
        print(*args, **kwargs)


def mock_answer(q: QuestionPayload) -> Any:
    """Pick an answer based on the question type.

    Returns ``None`` to leave an optional question unanswered.
    """
    if not q.required and _random_mode and random.random() < _skip_rate:
        return None

    if q.type == "multiple-choice":
        if not q.options:
            return None
        return random.choice(q.options) if _random_mode else q.options[0]
    if q.type == "email":
        return random.choice(_RANDOM_EMAIL_POOL) if _random_mode else "ada@example.org"
    if q.type == "rating":
        return random.randint(1, 5) if _random_mode else 5
    if q.type == "number":
        return random.randint(0, 20) if _random_mode else 3
    if q.type == "date":
        return "2026-01-15"
    return random.choice(_RANDOM_TEXT_POOL) if _random_mode else "Ada Lovelace"


def repair_answer(q: QuestionPayload) -> Any:
    """A value guaranteed to pass validation, used after an error."""
    if q.type == "email":
        return "ada@example.org"
    if q.type == "multiple-choice" and q.options:
        return q.options[0]
    if q.type in ("rating", "number"):
        return 3
    return "filled after validation error"


# ---------------------------------------------------------------------------
# Simulation loop
# ---------------------------------------------------------------------------


async def run_simulation(form_id: str, fail_first: bool) -> int:
    store = FormStore()
    store.load()
    engine = FormEngine(store, PrintingSink(fail_first=fail_first))

    info = await engine.create_session(form_id, session_id=SESSION_ID)
    _print(f"Session {info.session_id} on form '{form_id}'")

    step = await engine.get_current_step(SESSION_ID)
    for count in range(_MAX_STEPS):
        if isinstance(step, WelcomeStep):
            _print(f"\n[welcome] {step.title}")
            step = await engine.advance(SESSION_ID)
            continue

        if isinstance(step, FinalStep):
            _print(f"\n[final:{step.final_id}] {step.title}")
            step = await engine.advance(SESSION_ID)
            continue

        if isinstance(step, CompletedStep):
            _print(f"\n[completed] submission={step.submission_status.value}")
            if step.submission_error:
                _print(f"     error: {step.submission_error} -> retrying")
                step = await engine.retry_submission(SESSION_ID)
                _print(f"[completed] submission={step.submission_status.value}")
            _print(f"\nSimulation complete after {count} steps")
            return 0

        assert isinstance(step, QuestionStep)
        if step.errors:
            # Second pass on the same step: fix every failing question
            answers = {
                q.id: repair_answer(q) for q in step.questions if q.id in step.errors
            }
            for qid, error in step.errors.items():
                _print(f"     ! {qid}: {error.code.value}")
        else:
            header = step.group_title or step.question.title
            _print(f"\n[{step.step_number}/{step.total_steps}] {header}")
            answers = {}
            for q in step.questions:
                value = mock_answer(q)
                _print(f"   {q.title} ({q.id}, {q.type}) -> {value!r}")
                if value is not None:
                    answers[q.id] = value

        step = await engine.submit_step(SESSION_ID, answers)

    _print(f"\n[!] Gave up after {_MAX_STEPS} steps")
    return 1


def list_forms(store: FormStore) -> None:
    """Print all published forms and exit."""
    print("Available forms:")
    print()
    for i, form in enumerate(store.list_forms(), 1):
        print(f"  {i:2d}. {form.id:<25s} {form.title} ({len(form.questions)} questions)")


def main() -> None:
    global _random_mode, _skip_rate, _quiet

    parser = argparse.ArgumentParser(
        description="Simulate filling a form end-to-end with mock answers.",
    )
    parser.add_argument(
        "-f", "--form",
        default=_DEFAULT_FORM,
        help=f"Form id to fill (default: {_DEFAULT_FORM})",
    )
    parser.add_argument(
        "--list-forms",
        action="store_true",
        help="List all published forms and exit",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress all print output (exit code still reflects success/failure)",
    )
    parser.add_argument(
        "--random",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Randomise mock answers (default: on). Use --no-random for deterministic mode.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random answer generator",
    )
    parser.add_argument(
        "--skip-rate",
        type=float,
        default=0.2,
        help="Probability of leaving an optional question blank (default: 0.2)",
    )
    parser.add_argument(
        "--fail-first",
        action="store_true",
        help="Make the first submission fail to exercise the retry path",
    )
    args = parser.parse_args()

    if args.list_forms:
        store = FormStore()
        store.load()
        list_forms(store)
        sys.exit(0)

    _random_mode = args.random
    _skip_rate = args.skip_rate
    _quiet = args.quiet
    if args.seed is not None:
        random.seed(args.seed)

    sys.exit(asyncio.run(run_simulation(args.form, args.fail_first)))


if __name__ == "__main__":
    main()
