#!/usr/bin/env python3
"""API client integration test for the formflow server.

Exercises the API endpoints by acting as a pure HTTP client against the
live server (unlike ``simulate_form.py`` which calls the SDK in process).

For every published form (or the ones selected with ``-f``) it runs N
random sessions, answering each step with random values (sometimes
invalid, to exercise validation), occasionally stepping back, and checks
that every session ends in ``completed`` with a response whose answers
match what was sent.

Usage::

    # Install deps (first time only)
    pip install -e ".[scripts]"

    # Quick smoke test (one form, one run)
    python scripts/run_client_test.py -f customer-feedback -n 1 -v

    # Full run (all published forms x 5 runs)
    python scripts/run_client_test.py -n 5

    # Reproducible run
    python scripts/run_client_test.py --seed 42
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx
from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TEXT_POOL = [
    "Ada Lovelace",
    "Great service",
    "skip",
    "Waited too long",
    "   ",
]

EMAIL_POOL = [
    "ada@example.org",
    "grace@example.com",
    "broken-address",
]


# ---------------------------------------------------------------------------
# SessionResult: outcome of one session
# ---------------------------------------------------------------------------

@dataclass
class SessionResult:
    """Outcome of one session run."""

    form_id: str
    run_index: int
    status: str = "incomplete"  # success | failed | incomplete
    steps_taken: int = 0
    validation_errors: int = 0
    back_steps: int = 0
    final_id: str | None = None
    answers: int = 0
    error: str | None = None
    sent: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# APIClient: thin httpx wrapper
# ---------------------------------------------------------------------------

class APIClient:
    """Async HTTP client for the formflow server API."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> APIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    async def health_check(self) -> bool:
        """Check server health. Returns True if server is reachable."""
        try:
            resp = await self._client.get("/health")  # type: ignore[union-attr]
            return resp.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False

    async def list_forms(self) -> list[dict]:
        return await self._request("GET", "/api/v1/forms")

    async def create_session(self, form_id: str, session_id: str) -> dict:
        return await self._request(
            "POST", "/api/v1/sessions",
            json={"form_id": form_id, "session_id": session_id},
        )

    async def get_step(self, session_id: str) -> dict:
        return await self._request("GET", f"/api/v1/sessions/{session_id}/step")

    async def submit_step(self, session_id: str, answers: dict[str, Any]) -> dict:
        return await self._request(
            "POST", f"/api/v1/sessions/{session_id}/step",
            json={"answers": answers},
        )

    async def step_back(self, session_id: str) -> dict:
        return await self._request("POST", f"/api/v1/sessions/{session_id}/back")

    async def get_response(self, session_id: str) -> dict:
        return await self._request("GET", f"/api/v1/sessions/{session_id}/response")

    async def delete_session(self, session_id: str) -> None:
        resp = await self._client.delete(f"/api/v1/sessions/{session_id}")  # type: ignore[union-attr]
        resp.raise_for_status()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        """Send a request, retry once on timeout."""
        try:
            resp = await self._client.request(method, path, json=json)  # type: ignore[union-attr]
        except httpx.TimeoutException:
            # One retry
            resp = await self._client.request(method, path, json=json)  # type: ignore[union-attr]
        resp.raise_for_status()
        return resp.json()


# ---------------------------------------------------------------------------
# AnswerGenerator: random answers per question type
# ---------------------------------------------------------------------------

class AnswerGenerator:
    """Random answers; some deliberately invalid to exercise validation."""

    def __init__(self, rng: random.Random):
        self._rng = rng

    def answer(self, question: dict) -> Any:
        qtype = question.get("type")
        if qtype == "multiple-choice":
            options = question.get("options") or []
            return self._rng.choice(options) if options else None
        if qtype == "email":
            return self._rng.choice(EMAIL_POOL)
        if qtype == "rating":
            return self._rng.randint(1, 5)
        if qtype == "number":
            return self._rng.randint(0, 50)
        if qtype == "date":
            return f"2026-{self._rng.randint(1, 12):02d}-{self._rng.randint(1, 28):02d}"
        return self._rng.choice(TEXT_POOL)

    @staticmethod
    def valid_answer(question: dict) -> Any:
        """A value that always passes validation."""
        qtype = question.get("type")
        if qtype == "email":
            return "ada@example.org"
        if qtype == "multiple-choice" and question.get("options"):
            return question["options"][0]
        if qtype in ("rating", "number"):
            return 3
        return "valid answer"


# ---------------------------------------------------------------------------
# RichPrinter: verbosity-aware console output
# ---------------------------------------------------------------------------

class RichPrinter:
    """Verbosity-aware console output using rich."""

    def __init__(self, verbosity: int = 0):
        self.console = Console()
        self.verbosity = verbosity

    def session_header(self, index: int, total: int, form_id: str, run: int, runs: int) -> None:
        self.console.print(
            f"\n[bold cyan][{index}/{total}][/] {form_id} (run {run}/{runs})"
        )

    def step(self, step: dict) -> None:
        """Print the step being answered (verbosity >= 1)."""
        if self.verbosity < 1:
            return
        kind = step.get("type")
        if kind == "question":
            title = step.get("group_title") or step["question"]["title"]
            self.console.print(
                f"    [dim]{step['step_number']}/{step['total_steps']}[/] {title}"
            )
        else:
            self.console.print(f"    [dim]{kind}[/] {step.get('title', '')}")

    def answers(self, answers: dict[str, Any]) -> None:
        if self.verbosity < 1:
            return
        for qid, value in answers.items():
            self.console.print(f"      [dim]{qid}:[/] {value!r}")

    def validation(self, errors: dict[str, dict]) -> None:
        if self.verbosity < 1:
            return
        for qid, err in errors.items():
            self.console.print(f"      [yellow]![/] {qid}: {err.get('code')}")

    def json_payload(self, label: str, data: Any) -> None:
        """Print full JSON payload (verbosity >= 2)."""
        if self.verbosity < 2:
            return
        formatted = json.dumps(data, ensure_ascii=False, indent=2)
        self.console.print(f"    [dim]{label}:[/]")
        self.console.print(f"    {formatted}")

    def result_line(self, result: SessionResult) -> None:
        if result.status == "success":
            status_str = "[green]OK[/]"
        elif result.status == "failed":
            status_str = f"[red]FAILED[/]: {result.error}"
        else:
            status_str = f"[yellow]{result.status.upper()}[/]"
        final = result.final_id or "(no final)"
        self.console.print(
            f"  → {result.steps_taken} steps, {result.answers} answers, "
            f"{final} — {status_str}"
        )


# ---------------------------------------------------------------------------
# SessionRunner: drives one session start-to-finish
# ---------------------------------------------------------------------------

class SessionRunner:
    """Run a single fill session through the API."""

    def __init__(
        self,
        client: APIClient,
        answer_gen: AnswerGenerator,
        printer: RichPrinter,
        rng: random.Random,
        max_steps: int = 100,
        back_rate: float = 0.1,
    ):
        self._client = client
        self._answer_gen = answer_gen
        self._printer = printer
        self._rng = rng
        self._max_steps = max_steps
        self._back_rate = back_rate

    async def run(self, form_id: str, run_index: int) -> SessionResult:
        """Execute a full session and return the result."""
        result = SessionResult(form_id=form_id, run_index=run_index)
        session_id = f"test_session_{uuid.uuid4().hex[:12]}"

        try:
            await self._client.create_session(form_id, session_id)
            step = await self._client.get_step(session_id)

            while result.steps_taken < self._max_steps:
                result.steps_taken += 1
                self._printer.step(step)
                kind = step["type"]

                if kind == "completed":
                    await self._check_response(session_id, step, result)
                    break

                if kind == "final":
                    result.final_id = step["final_id"]
                    step = await self._client.submit_step(session_id, {})
                    continue

                if kind == "welcome":
                    step = await self._client.submit_step(session_id, {})
                    continue

                # --- Question step ---
                if step["can_go_back"] and self._rng.random() < self._back_rate:
                    result.back_steps += 1
                    step = await self._client.step_back(session_id)
                    continue

                if step["errors"]:
                    result.validation_errors += len(step["errors"])
                    self._printer.validation(step["errors"])
                    answers = {
                        q["id"]: self._answer_gen.valid_answer(q)
                        for q in step["questions"]
                        if q["id"] in step["errors"]
                    }
                else:
                    answers = {}
                    for q in step["questions"]:
                        value = self._answer_gen.answer(q)
                        if value is not None:
                            answers[q["id"]] = value

                self._printer.answers(answers)
                result.sent.update(answers)
                step = await self._client.submit_step(session_id, answers)

            await self._client.delete_session(session_id)
        except httpx.HTTPStatusError as exc:
            result.status = "failed"
            result.error = f"HTTP {exc.response.status_code}: {exc.response.text}"
        except (httpx.HTTPError, KeyError) as exc:
            result.status = "failed"
            result.error = f"{type(exc).__name__}: {exc}"

        return result

    async def _check_response(self, session_id: str, step: dict, result: SessionResult) -> None:
        """Compare the submitted response against the answers that were sent."""
        if step["submission_status"] != "submitted":
            result.status = "failed"
            result.error = f"submission {step['submission_status']}: {step.get('submission_error')}"
            return

        response = await self._client.get_response(session_id)
        self._printer.json_payload("Response", response)
        result.answers = len(response["answers"])

        for answer in response["answers"]:
            sent = result.sent.get(answer["questionId"])
            if sent != answer["value"]:
                result.status = "failed"
                result.error = (
                    f"answer mismatch for {answer['questionId']}: "
                    f"sent {sent!r}, got {answer['value']!r}"
                )
                return
        result.status = "success"


# ---------------------------------------------------------------------------
# ResultCollector: summary table
# ---------------------------------------------------------------------------

class ResultCollector:
    """Collect and aggregate session results for the final summary."""

    def __init__(self) -> None:
        self.results: list[SessionResult] = []

    def add(self, result: SessionResult) -> None:
        self.results.append(result)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status == "success")

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    @property
    def incomplete(self) -> int:
        return sum(1 for r in self.results if r.status == "incomplete")

    def print_summary(self, console: Console) -> None:
        """Print a rich summary table of all results."""
        console.print("\n")
        console.rule("[bold]Session Summary")
        console.print()

        console.print(f"  Total:       {self.total}")
        console.print(f"  [green]Passed:[/]      {self.passed}")
        console.print(f"  [red]Failed:[/]      {self.failed}")
        console.print(f"  [yellow]Incomplete:[/]  {self.incomplete}")
        console.print()

        table = Table(title="Results by Session", show_lines=True)
        table.add_column("#", style="dim", width=4)
        table.add_column("Form", min_width=20)
        table.add_column("Run", width=4)
        table.add_column("Status", width=8)
        table.add_column("Steps", width=6)
        table.add_column("Errors", width=7)
        table.add_column("Back", width=5)
        table.add_column("Final", min_width=10)
        table.add_column("Answers", width=8)

        for i, r in enumerate(self.results, 1):
            status_str = {
                "success": "[green]OK[/]",
                "failed": "[red]FAIL[/]",
                "incomplete": "[yellow]INC[/]",
            }.get(r.status, r.status)
            table.add_row(
                str(i),
                r.form_id,
                str(r.run_index),
                status_str,
                str(r.steps_taken),
                str(r.validation_errors),
                str(r.back_steps),
                r.final_id or "-",
                str(r.answers),
            )

        console.print(table)

        failed = [r for r in self.results if r.status == "failed"]
        if failed:
            console.print()
            console.rule("[red]Failed Sessions")
            for r in failed:
                console.print(f"  {r.form_id} (run {r.run_index}): {r.error}")

        console.print()


# ---------------------------------------------------------------------------
# CLI + async main
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="API client integration test for the formflow server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8080",
        help="Server base URL (default: http://localhost:8080)",
    )
    parser.add_argument(
        "-n", "--runs",
        type=int, default=3,
        help="Number of random runs per form (default: 3)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count", default=0,
        help="Increase verbosity (-v for steps and answers, -vv for full JSON)",
    )
    parser.add_argument(
        "--seed",
        type=int, default=None,
        help="RNG seed for reproducibility (default: current timestamp)",
    )
    parser.add_argument(
        "-f", "--form",
        type=str, default=None,
        help="Filter forms (comma-separated ids, e.g. 'customer-feedback')",
    )
    parser.add_argument(
        "--back-rate",
        type=float, default=0.1,
        help="Probability of stepping back instead of answering (default: 0.1)",
    )
    parser.add_argument(
        "--max-steps",
        type=int, default=100,
        help="Safety limit: max steps per session (default: 100)",
    )
    parser.add_argument(
        "--timeout",
        type=float, default=30.0,
        help="HTTP request timeout in seconds (default: 30)",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    console = Console()

    # --- Seed ---
    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    console.print(f"[dim]RNG seed: {seed}[/]")

    printer = RichPrinter(verbosity=args.verbose)
    collector = ResultCollector()

    async with APIClient(args.base_url, timeout=args.timeout) as client:
        healthy = await client.health_check()
        if not healthy:
            console.print(
                f"[red]Server at {args.base_url} is not reachable. "
                f"Is the server running?[/]"
            )
            sys.exit(1)
        console.print(f"[green]Server health check passed[/] ({args.base_url})")

        # --- Select forms ---
        available = [f["id"] for f in await client.list_forms()]
        form_ids = available
        if args.form:
            form_ids = [f.strip() for f in args.form.split(",")]
            for form_id in form_ids:
                if form_id not in available:
                    console.print(f"[red]Unknown form:[/] '{form_id}'")
                    console.print(f"Available: {', '.join(available)}")
                    sys.exit(1)

        if not form_ids:
            console.print("[red]The server has no published forms.[/]")
            sys.exit(1)

        total_sessions = len(form_ids) * args.runs
        console.print(
            f"[bold]Running {total_sessions} sessions "
            f"({len(form_ids)} forms x {args.runs} runs)[/]"
        )

        runner = SessionRunner(
            client, AnswerGenerator(rng), printer, rng,
            max_steps=args.max_steps, back_rate=args.back_rate,
        )

        session_num = 0
        for form_id in form_ids:
            for run_idx in range(1, args.runs + 1):
                session_num += 1
                printer.session_header(session_num, total_sessions, form_id, run_idx, args.runs)
                result = await runner.run(form_id, run_idx)
                printer.result_line(result)
                collector.add(result)

    # --- Summary ---
    collector.print_summary(console)

    # Exit code: 1 if any failures
    if collector.failed > 0:
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
