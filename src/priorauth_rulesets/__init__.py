"""priorauth_rulesets — question-flow decision engine for prior-authorization intake.

Public API:
    IntakeEngine      — session state machine (intake → question flow → decision)
    RulesetStore      — loads the drug catalog and question sets from YAML
    DrugResolver      — free-text drug name → catalog entry with confidence
    AnswerNormalizer  — tiered raw-answer → canonical-answer matching
    DecisionDeriver   — fallback decision when a flow ends without a verdict
    SessionStore      — session persistence interface
    InMemorySessionStore — single-process SessionStore
    MatchSettings     — tunable thresholds

Text classification (semantic tier + intake extraction):
    TextClassifier    — ABC
    RuleBasedClassifier, LLMClassifier, build_classifier

Step models:
    StepResult        — union returned by engine step methods
    IntakeStep, QuestionStep, ClarificationStep, DecisionStep, ErrorStep
    SessionSummary    — read model for presentation

Errors:
    SessionNotFound, SessionClosed, GraphNotFound (all ``ValueError``)
"""

from priorauth_rulesets.classifiers import LLMClassifier, RuleBasedClassifier, build_classifier
from priorauth_rulesets.constants import MatchSettings
from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.errors import (
    DrugNotFound,
    GraphNotFound,
    InvalidQuestionSet,
    NodeNotFound,
    NotFoundError,
    PriorAuthError,
    SessionClosed,
    SessionNotFound,
)
from priorauth_rulesets.evaluator import DecisionDeriver
from priorauth_rulesets.interfaces import TextClassifier
from priorauth_rulesets.models.session import (
    ClarificationStep,
    DecisionStep,
    ErrorStep,
    IntakeStep,
    QuestionPayload,
    QuestionStep,
    SessionSummary,
    StepResult,
)
from priorauth_rulesets.normalizer import AnswerNormalizer
from priorauth_rulesets.prompt import PromptManager
from priorauth_rulesets.resolver import DrugResolver
from priorauth_rulesets.ruleset import RulesetStore
from priorauth_rulesets.similarity import edit_distance, similarity
from priorauth_rulesets.store import InMemorySessionStore, SessionStore

__all__ = [
    # Engine & components
    "IntakeEngine",
    "RulesetStore",
    "DrugResolver",
    "AnswerNormalizer",
    "DecisionDeriver",
    "SessionStore",
    "InMemorySessionStore",
    "MatchSettings",
    "PromptManager",
    "similarity",
    "edit_distance",
    # Classifiers
    "TextClassifier",
    "RuleBasedClassifier",
    "LLMClassifier",
    "build_classifier",
    # Steps
    "StepResult",
    "IntakeStep",
    "QuestionStep",
    "ClarificationStep",
    "DecisionStep",
    "ErrorStep",
    "QuestionPayload",
    "SessionSummary",
    # Errors
    "PriorAuthError",
    "NotFoundError",
    "SessionNotFound",
    "SessionClosed",
    "GraphNotFound",
    "NodeNotFound",
    "DrugNotFound",
    "InvalidQuestionSet",
]
