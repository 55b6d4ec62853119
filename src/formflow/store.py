"""FormStore — loads form definitions from ``forms/`` into typed models.

This is the single source of form definitions at runtime.  The store is
loaded once at startup and provides lookup by form id.  Definitions are
camelCase YAML or JSON documents (one form per file), the same shape the
form editor exports.

Usage::

    store = FormStore()             # defaults to forms/ relative to repo root
    store.load()                    # parse every *.yaml / *.yml / *.json

    form = store.get_form("customer-feedback")
    published = store.list_forms()

Every loaded form is linted for workflow references that do not resolve.
Those are logged as warnings only: at runtime a dangling reference simply
falls through to the next rule.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from formflow.constants import END_FORM_TARGET, FORM_FILE_SUFFIXES
from formflow.models.form import Form
from formflow.models.workflow import JumpToAction

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def load_form_file(path: Path | str) -> Form:
    """Parse one YAML or JSON form definition.

    Raises:
        pydantic.ValidationError: if the document is not a valid form.
    """
    path = Path(path)
    if path.suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    else:
        raw = load_yaml(path)
    return Form.model_validate(raw)


def lint_workflow(form: Form) -> list[str]:
    """Return one message per workflow reference that does not resolve.

    Conditions must name a question (top-level or nested).  ``jumpTo``
    targets must name ``end_form``, a final screen, or a top-level question.
    """
    question_ids = {q.id for q in form.iter_questions()}
    top_level_ids = {q.id for q in form.questions}
    final_ids = {f.id for f in form.finals}

    problems: list[str] = []
    for rule in form.workflow.rules:
        for cond in rule.conditions or []:
            if cond.question_id not in question_ids:
                problems.append(
                    f"rule {rule.id}: condition references unknown question "
                    f"'{cond.question_id}'"
                )
        for action in rule.actions:
            if not isinstance(action, JumpToAction):
                continue
            target = action.target_question_id
            if target == END_FORM_TARGET or target in final_ids or target in top_level_ids:
                continue
            if target in question_ids:
                problems.append(
                    f"rule {rule.id}: jumpTo target '{target}' is a nested "
                    "sub-question and cannot be jumped to"
                )
            else:
                problems.append(f"rule {rule.id}: jumpTo target '{target}' does not exist")
    return problems


# ---------------------------------------------------------------------------
# FormStore
# ---------------------------------------------------------------------------

class FormStore:
    """Loads every form definition from a directory and provides lookup.

    Attributes populated after :meth:`load`:

        forms — dict[form_id, Form] in file-name order
    """

    def __init__(self, forms_dir: str | Path | None = None) -> None:
        if forms_dir is None:
            forms_dir = find_repo_root() / "forms"
        self._base = Path(forms_dir)

        # Populated by load()
        self.forms: dict[str, Form] = {}

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse every form file in the forms directory.

        Call this once at startup.  Raises ``FileNotFoundError`` if the
        directory is missing and ``ValueError`` on duplicate form ids.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing forms directory: {self._base}")

        for path in sorted(self._base.iterdir()):
            if path.suffix not in FORM_FILE_SUFFIXES:
                continue
            form = load_form_file(path)
            if form.id in self.forms:
                raise ValueError(f"Duplicate form id '{form.id}' in {path.name}")
            self.add_form(form)

        logger.info(
            "FormStore loaded: %d forms (%d published) from %s",
            len(self.forms),
            len(self.list_forms()),
            self._base,
        )

    def add_form(self, form: Form) -> Form:
        """Register (or replace) a form built in code, linting its workflow."""
        for problem in lint_workflow(form):
            logger.warning("form %s: %s", form.id, problem)
        self.forms[form.id] = form
        return form

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def get_form(self, form_id: str, *, include_unpublished: bool = False) -> Form:
        """Look up a form by id.

        Unpublished forms are hidden unless ``include_unpublished`` is set.

        Raises:
            KeyError: if the form is not found (or is unpublished).
        """
        form = self.forms.get(form_id)
        if form is None or (not form.is_published and not include_unpublished):
            raise KeyError(f"Form not found: {form_id}")
        return form

    def list_forms(self, *, include_unpublished: bool = False) -> list[Form]:
        """Return the loaded forms in load order."""
        return [
            f for f in self.forms.values()
            if f.is_published or include_unpublished
        ]
