"""Reference data endpoints — drug catalog, question sets, drug resolution.

Read-only views over the data loaded from ``v1/``.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.models.match import DrugResolution
from priorauth_rulesets.models.schema import QuestionSet
from priorauth_rulesets.ruleset import RulesetStore

from priorauth_server.dependencies import get_engine, get_store

router = APIRouter(prefix="/reference", tags=["reference"])


class ResolveDrugRequest(BaseModel):
    """Body for POST /reference/drugs/resolve."""
    name: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/drugs")
def list_drugs(
    store: RulesetStore = Depends(get_store),
) -> list[dict]:
    """Return the drug catalog in declaration order."""
    return [
        {
            "id": drug.id,
            "name": drug.name,
            "generic_name": drug.generic_name,
            "category": drug.category,
            "indication": drug.indication,
            "question_set": drug.question_set,
        }
        for drug in store.drugs
    ]


@router.post("/drugs/resolve")
def resolve_drug(
    body: ResolveDrugRequest,
    engine: IntakeEngine = Depends(get_engine),
) -> DrugResolution:
    """Resolve a free-text drug name without touching any session."""
    return engine.resolver.resolve(body.name)


@router.get("/question-sets")
def list_question_sets(
    store: RulesetStore = Depends(get_store),
) -> list[dict]:
    """Return a summary of every question set."""
    return [
        {
            "id": qs.id,
            "name": qs.name,
            "description": qs.description,
            "start": qs.start,
            "question_count": len(qs.questions),
        }
        for qs in store.question_sets.values()
    ]


@router.get("/question-sets/{question_set_id}")
def get_question_set(
    question_set_id: str,
    store: RulesetStore = Depends(get_store),
) -> QuestionSet:
    """Return one question set in full.  Raises 404 if unknown."""
    return store.get_question_set(question_set_id)
