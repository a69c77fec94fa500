"""Step endpoints — intake fields, answers and the current question.

Every POST returns a step whose ``type`` tells the caller what to do next:
``intake``, ``next_question``, ``clarification``, ``complete`` or ``error``.
Submitting to a completed or ended session returns 409.
"""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.models.session import QuestionPayload, StepResult

from priorauth_server.dependencies import get_engine

router = APIRouter(tags=["steps"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class IntakeFieldRequest(BaseModel):
    """Body for POST /sessions/{session_id}/intake."""
    field: Literal["member_name", "date_of_birth", "drug_name"]
    value: str


class IntakeTextRequest(BaseModel):
    """Body for POST /sessions/{session_id}/intake/text."""
    text: str


class AnswerRequest(BaseModel):
    """Body for POST /sessions/{session_id}/answer."""
    answer: str


class CurrentQuestionResponse(BaseModel):
    """Response for GET /sessions/{session_id}/question."""
    question: QuestionPayload | None = None


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/sessions/{session_id}/question")
async def get_current_question(
    session_id: str,
    engine: IntakeEngine = Depends(get_engine),
) -> CurrentQuestionResponse:
    """Return the question awaiting an answer (null outside the question flow)."""
    return CurrentQuestionResponse(question=await engine.get_current_question(session_id))


@router.post("/sessions/{session_id}/intake")
async def submit_intake_field(
    session_id: str,
    body: IntakeFieldRequest,
    engine: IntakeEngine = Depends(get_engine),
) -> StepResult:
    """Record a single intake field; a resolved drug starts the question flow."""
    return await engine.submit_intake_field(session_id, body.field, body.value)


@router.post("/sessions/{session_id}/intake/text")
async def submit_intake_text(
    session_id: str,
    body: IntakeTextRequest,
    engine: IntakeEngine = Depends(get_engine),
) -> StepResult:
    """Extract intake fields from free text and apply them."""
    return await engine.submit_intake_text(session_id, body.text)


@router.post("/sessions/{session_id}/answer")
async def submit_answer(
    session_id: str,
    body: AnswerRequest,
    engine: IntakeEngine = Depends(get_engine),
) -> StepResult:
    """Submit a raw answer for the current question and advance."""
    return await engine.submit_answer(session_id, body.answer)
