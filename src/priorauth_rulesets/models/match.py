"""Matching models shared by the normalizer, resolver and text classifiers.

  - MatchResult: outcome of normalizing one raw answer against one node
  - MatchCandidate: a plausible option offered back during clarification
  - SemanticMatch: what a TextClassifier returns for option matching
  - IntakeExtraction: what a TextClassifier pulls out of free intake text
  - DrugResolution / DrugAlternative: outcome of resolving a drug name
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel

from .schema import DrugRecord

ClarificationReason = Literal[
    "too_short", "ambiguous", "not_numeric", "out_of_range", "unrecognized",
]
MatchTier = Literal["exact", "pattern", "fuzzy", "semantic"]


class MatchCandidate(BaseModel):
    """An option the answer might have meant."""

    option: str
    confidence: float = 1.0


class MatchResult(BaseModel):
    """Normalized answer, or a request to clarify.

    Exactly one of ``canonical_answer`` / ``needs_clarification`` is set.
    """

    canonical_answer: Optional[Union[float, str]] = None
    needs_clarification: bool = False
    clarification_reason: Optional[ClarificationReason] = None
    message: Optional[str] = None
    candidates: list[MatchCandidate] = []
    tier: Optional[MatchTier] = None

    @classmethod
    def accept(cls, answer: Union[float, str], tier: MatchTier) -> "MatchResult":
        return cls(canonical_answer=answer, tier=tier)

    @classmethod
    def clarify(
        cls,
        reason: ClarificationReason,
        message: str,
        candidates: list[MatchCandidate] | None = None,
        tier: MatchTier | None = None,
    ) -> "MatchResult":
        return cls(
            needs_clarification=True,
            clarification_reason=reason,
            message=message,
            candidates=candidates or [],
            tier=tier,
        )


class SemanticMatch(BaseModel):
    """Classifier verdict for matching a raw answer to an option list.

    ``option`` is set only when the classifier is confident in a single
    option; ``possible_matches`` lists every option it considers plausible.
    """

    matched: bool = False
    option: Optional[str] = None
    confidence: float = 0.0
    possible_matches: list[str] = []


class IntakeExtraction(BaseModel):
    """Best-effort intake fields pulled from free text; unset means not found."""

    member_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    drug_name: Optional[str] = None

    def populated(self) -> dict[str, str]:
        """Only the fields that were actually extracted."""
        return {k: v for k, v in self.model_dump().items() if v}


class DrugAlternative(BaseModel):
    """A near-miss drug offered as "did you mean"."""

    id: str
    name: str
    confidence: float


class DrugResolution(BaseModel):
    """Result of resolving a free-text drug name against the catalog."""

    query: str
    corrected_query: Optional[str] = None
    drug: Optional[DrugRecord] = None
    confidence: float = 0.0
    alternatives: list[DrugAlternative] = []

    @property
    def resolved(self) -> bool:
        return self.drug is not None
