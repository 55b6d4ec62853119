"""formflow — form navigation and conditional workflow engine.

Public API:
    FormEngine        — async orchestrator over sessions, forms and the sink
    FormSession       — per-respondent state machine (advance / back / answers)
    FormStore         — loads YAML/JSON form definitions into typed models
    SessionRegistry   — in-memory set of live sessions keyed by session id
    ResponseSink      — ABC for the persistence collaborator

Engine components (usable on their own):
    AnswerStore        — mutable question_id -> value mapping
    AnswerValidator    — required / e-mail checks per question and per step
    RuleEvaluator      — left-to-right condition fold for ``if`` rules
    NavigationResolver — decides the next navigation target
    ResponseAssembler  — builds the submitted Response

Step models:
    StepResult        — union of the step types returned by the engine
    WelcomeStep       — step: welcome screen
    QuestionStep      — step: questions to render, values and errors
    FinalStep         — step: final screen
    CompletedStep     — step: terminal, with submission status
    SessionInfo       — public view of session state
"""

from formflow.answers import AnswerStore
from formflow.assembler import ResponseAssembler
from formflow.engine import FormEngine
from formflow.evaluator import RuleEvaluator
from formflow.interfaces import ResponseSink
from formflow.models.form import Form
from formflow.models.response import Answer, Response
from formflow.models.session import (
    CompletedStep,
    FinalStep,
    QuestionPayload,
    QuestionStep,
    SessionInfo,
    StepResult,
    WelcomeStep,
)
from formflow.registry import SessionRegistry
from formflow.resolver import NavigationResolver
from formflow.session import FormSession
from formflow.store import FormStore
from formflow.validator import AnswerValidator

__all__ = [
    # Engine, session & store
    "FormEngine",
    "FormSession",
    "FormStore",
    "SessionRegistry",
    "ResponseSink",
    # Components
    "AnswerStore",
    "AnswerValidator",
    "NavigationResolver",
    "ResponseAssembler",
    "RuleEvaluator",
    # Data
    "Answer",
    "Form",
    "Response",
    # Session / step
    "CompletedStep",
    "FinalStep",
    "QuestionPayload",
    "QuestionStep",
    "SessionInfo",
    "StepResult",
    "WelcomeStep",
]
