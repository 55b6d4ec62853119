"""Public model re-exports for formflow.

Consumers should import from ``formflow.models`` rather than reaching into
sub-modules directly.
"""

# --- Questions ---
from formflow.models.question import (
    CONTAINER_TYPES,
    BaseQuestion,
    CamelModel,
    ContainerQuestion,
    FieldQuestion,
    GroupQuestion,
    MultiQuestion,
    Question,
    QuestionType,
)

# --- Workflow ---
from formflow.models.workflow import (
    Action,
    Condition,
    EndFormAction,
    HideFieldAction,
    JumpToAction,
    LogicalOperator,
    Operator,
    RedirectAction,
    RuleOperation,
    RuleType,
    ShowFieldAction,
    ShowMessageAction,
    Workflow,
    WorkflowRule,
)

# --- Form ---
from formflow.models.form import FinalScreen, Form, WelcomeScreen

# --- Answers / response ---
from formflow.models.response import Answer, AnswerValue, Response

# --- Session / step ---
from formflow.models.session import (
    CompletedStep,
    FieldError,
    FinalStep,
    GoToFinal,
    GoToQuestion,
    NavTarget,
    NextLinear,
    NextSubQuestion,
    Position,
    QuestionPayload,
    QuestionStep,
    SessionInfo,
    SessionState,
    StepResult,
    Submit,
    SubmissionStatus,
    ValidationErrorCode,
    ValidationResult,
    WelcomeStep,
)

__all__ = [
    # Questions
    "BaseQuestion",
    "CamelModel",
    "CONTAINER_TYPES",
    "ContainerQuestion",
    "FieldQuestion",
    "GroupQuestion",
    "MultiQuestion",
    "Question",
    "QuestionType",
    # Workflow
    "Action",
    "Condition",
    "EndFormAction",
    "HideFieldAction",
    "JumpToAction",
    "LogicalOperator",
    "Operator",
    "RedirectAction",
    "RuleOperation",
    "RuleType",
    "ShowFieldAction",
    "ShowMessageAction",
    "Workflow",
    "WorkflowRule",
    # Form
    "FinalScreen",
    "Form",
    "WelcomeScreen",
    # Answers / response
    "Answer",
    "AnswerValue",
    "Response",
    # Session / step
    "CompletedStep",
    "FieldError",
    "FinalStep",
    "GoToFinal",
    "GoToQuestion",
    "NavTarget",
    "NextLinear",
    "NextSubQuestion",
    "Position",
    "QuestionPayload",
    "QuestionStep",
    "SessionInfo",
    "SessionState",
    "StepResult",
    "Submit",
    "SubmissionStatus",
    "ValidationErrorCode",
    "ValidationResult",
    "WelcomeStep",
]
