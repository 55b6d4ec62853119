"""Form endpoints — list published forms and fetch a definition.

These are read-only endpoints over the ``FormStore``.  Unpublished forms
are hidden and answer 404.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from formflow.models.form import Form
from formflow.store import FormStore

from formflow_server.dependencies import get_store

router = APIRouter(prefix="/forms", tags=["forms"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class FormSummary(BaseModel):
    """One entry of GET /forms."""
    id: str
    title: str
    description: str | None = None
    question_count: int
    has_welcome_screen: bool
    final_count: int


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
def list_forms(
    store: FormStore = Depends(get_store),
) -> list[FormSummary]:
    """Return a summary of every published form."""
    return [
        FormSummary(
            id=form.id,
            title=form.title,
            description=form.description,
            question_count=len(form.questions),
            has_welcome_screen=form.welcome_screen is not None,
            final_count=len(form.finals),
        )
        for form in store.list_forms()
    ]


@router.get("/{form_id}")
def get_form(
    form_id: str,
    store: FormStore = Depends(get_store),
) -> Form:
    """Return the full definition of a published form (camelCase JSON).

    Raises 404 if the form does not exist or is unpublished.
    """
    return store.get_form(form_id)
