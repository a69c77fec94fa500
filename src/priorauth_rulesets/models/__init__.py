"""Public model re-exports for priorauth_rulesets.

Consumers should import from ``priorauth_rulesets.models`` rather than
reaching into sub-modules directly.
"""

# --- Actions ---
from priorauth_rulesets.models.action import (
    Action,
    DecideAction,
    EndAction,
    GotoAction,
    Outcome,
)

# --- Questions ---
from priorauth_rulesets.models.question import (
    BaseQuestion,
    MultipleChoiceQuestion,
    NumericQuestion,
    NumericRange,
    Question,
    RangeTransition,
    TextQuestion,
    YesNoQuestion,
    question_mapper,
)

# --- Schema / reference data ---
from priorauth_rulesets.models.schema import (
    DrugRecord,
    FallbackOutcome,
    FallbackRule,
    Predicate,
    QuestionSet,
)

# --- Matching ---
from priorauth_rulesets.models.match import (
    DrugAlternative,
    DrugResolution,
    IntakeExtraction,
    MatchCandidate,
    MatchResult,
    SemanticMatch,
)

# --- Session / steps ---
from priorauth_rulesets.models.session import (
    AnswerRecord,
    ClarificationStep,
    CollectedFields,
    Decision,
    DecisionStep,
    ErrorStep,
    IntakeStep,
    QuestionPayload,
    QuestionStep,
    Session,
    SessionPhase,
    SessionStatus,
    SessionSummary,
    StepResult,
)

__all__ = [
    "Action",
    "DecideAction",
    "EndAction",
    "GotoAction",
    "Outcome",
    "BaseQuestion",
    "MultipleChoiceQuestion",
    "NumericQuestion",
    "NumericRange",
    "Question",
    "RangeTransition",
    "TextQuestion",
    "YesNoQuestion",
    "question_mapper",
    "DrugRecord",
    "FallbackOutcome",
    "FallbackRule",
    "Predicate",
    "QuestionSet",
    "DrugAlternative",
    "DrugResolution",
    "IntakeExtraction",
    "MatchCandidate",
    "MatchResult",
    "SemanticMatch",
    "AnswerRecord",
    "ClarificationStep",
    "CollectedFields",
    "Decision",
    "DecisionStep",
    "ErrorStep",
    "IntakeStep",
    "QuestionPayload",
    "QuestionStep",
    "Session",
    "SessionPhase",
    "SessionStatus",
    "SessionSummary",
    "StepResult",
]
