"""Session and step models, the contract between the engine and API callers.

``Session`` is the engine's internal state record, owned by the engine and
persisted through a ``SessionStore``.  Everything else here is what callers
see.

Step types (dispatch on ``type``):
  - IntakeStep: identity/drug fields still missing
  - QuestionStep: present the next question
  - ClarificationStep: the answer could not be interpreted; ask again
  - DecisionStep: a decision was reached
  - ErrorStep: the operation does not apply in the session's current phase
"""

import enum
from datetime import datetime, timezone
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from .action import Outcome
from .match import ClarificationReason, MatchCandidate, MatchTier


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, enum.Enum):
    """Lifecycle status.  ``completed`` means the session was ended."""

    ACTIVE = "active"
    COMPLETED = "completed"


class SessionPhase(str, enum.Enum):
    """Where the session is in the flow.

    Transitions:
        intake -> question_flow  (drug resolved)
        question_flow -> complete (decision recorded)
    """

    INTAKE = "intake"
    QUESTION_FLOW = "question_flow"
    COMPLETE = "complete"


class CollectedFields(BaseModel):
    """Identity and drug fields gathered during intake."""

    member_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    drug_name: Optional[str] = None
    drug_id: Optional[str] = None


class Decision(BaseModel):
    """Terminal decision with its operator-facing text.

    ``derived`` is True when the decision deriver produced it rather than
    the question graph.
    """

    outcome: Outcome
    reason: str
    derived: bool = False
    message: Optional[str] = None
    next_steps: Optional[str] = None


class AnswerRecord(BaseModel):
    """One accepted answer, kept in order for the session summary."""

    qid: str
    question: str
    raw_answer: str
    canonical_answer: Union[float, str]
    tier: Optional[MatchTier] = None
    answered_at: datetime = Field(default_factory=utcnow)


class Session(BaseModel):
    """Full session state.  Immutable once ``status`` is ``completed``."""

    session_id: str
    status: SessionStatus = SessionStatus.ACTIVE
    phase: SessionPhase = SessionPhase.INTAKE
    collected: CollectedFields = Field(default_factory=CollectedFields)
    question_set_id: Optional[str] = None
    current_node_id: Optional[str] = None
    answers: dict[str, Union[float, str]] = {}
    history: list[AnswerRecord] = []
    decision: Optional[Decision] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None

    @property
    def ended(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def touch(self) -> None:
        self.updated_at = utcnow()


class QuestionPayload(BaseModel):
    """Flattened question for API consumers.

    Strips routing details and presents only what a caller needs to ask
    the question.
    """

    qid: str
    question: str
    question_type: str
    # Ordered option labels for multiple_choice
    options: list[str] | None = None
    # {min, max} for numeric, {min_length} for text
    constraints: dict | None = None


class IntakeStep(BaseModel):
    """Engine step: intake fields are still missing."""

    type: Literal["intake"] = "intake"
    missing_fields: list[str]
    prompt: str | None = None
    collected: CollectedFields


class QuestionStep(BaseModel):
    """Engine step: present the next question."""

    type: Literal["next_question"] = "next_question"
    question: QuestionPayload


class ClarificationStep(BaseModel):
    """Engine step: the answer was not accepted; the session is unchanged."""

    type: Literal["clarification"] = "clarification"
    reason: ClarificationReason
    message: str
    candidates: list[MatchCandidate] = []
    question: QuestionPayload | None = None


class DecisionStep(BaseModel):
    """Engine step: the session reached a decision."""

    type: Literal["complete"] = "complete"
    decision: Decision


class ErrorStep(BaseModel):
    """Engine step: the operation does not apply right now."""

    type: Literal["error"] = "error"
    message: str


# Callers can match on step.type to dispatch rendering logic.
StepResult = IntakeStep | QuestionStep | ClarificationStep | DecisionStep | ErrorStep


class SessionSummary(BaseModel):
    """Public view of session state for presentation and reporting."""

    session_id: str
    status: SessionStatus
    phase: SessionPhase
    member_name: str | None = None
    date_of_birth: str | None = None
    drug_name: str | None = None
    drug_id: str | None = None
    question_set_id: str | None = None
    current_question_id: str | None = None
    answers: dict[str, Union[float, str]] = {}
    history: list[AnswerRecord] = []
    decision: Decision | None = None
    created_at: datetime
    updated_at: datetime
    ended_at: datetime | None = None
