"""DrugResolver: maps a free-text medication name to a catalog entry.

Resolution order:

  1. Apply the transcription-correction table (e.g. "manjaro" → "mounjaro").
  2. Case-insensitive exact match on name, generic name or any alias
     → confidence 1.0.
  3. Fuzzy match: each drug scores the best similarity across its names.
     A candidate is accepted if it clears the *strict* bar; near misses
     that clear the *loose* bar are returned as alternatives.

Both bars are raised when the query length differs from the drug name by
more than ``drug_length_tolerance`` characters, because short queries
score deceptively well against long names.

Ties at identical similarity go to the drug declared first in the catalog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from priorauth_rulesets.constants import MatchSettings
from priorauth_rulesets.models.match import DrugAlternative, DrugResolution
from priorauth_rulesets.models.schema import DrugRecord
from priorauth_rulesets.similarity import similarity

logger = logging.getLogger(__name__)


@dataclass
class _Scored:
    drug: DrugRecord
    score: float
    far: bool


class DrugResolver:
    """Resolves drug names against an ordered catalog.

    Args:
        drugs: catalog in declaration order (order breaks ties)
        corrections: lowercase misspelling → corrected name
        settings: matching thresholds; defaults to ``MatchSettings()``
    """

    def __init__(
        self,
        drugs: list[DrugRecord],
        corrections: dict[str, str] | None = None,
        settings: MatchSettings | None = None,
    ) -> None:
        self._drugs = list(drugs)
        self._corrections = {k.lower().strip(): v for k, v in (corrections or {}).items()}
        self._settings = settings or MatchSettings()

    def correct(self, raw_name: str) -> str:
        """Apply the transcription-correction table; unknown names pass through."""
        return self._corrections.get(raw_name.lower().strip(), raw_name)

    def resolve(
        self,
        raw_name: str,
        drugs: list[DrugRecord] | None = None,
    ) -> DrugResolution:
        """Resolve *raw_name* to a drug, or return alternatives when unsure.

        *drugs* replaces the bound catalog for this call (for example a
        plan-specific formulary); its order breaks ties the same way.
        """
        catalog = self._drugs if drugs is None else drugs
        corrected = self.correct(raw_name)
        result = DrugResolution(
            query=raw_name,
            corrected_query=corrected if corrected != raw_name else None,
        )
        if result.corrected_query:
            logger.debug("Corrected transcription %r -> %r", raw_name, corrected)

        term = corrected.lower().strip()
        if not term:
            return result

        # --- Exact tier ---
        for drug in catalog:
            if any(term == name.lower() for name in drug.all_names):
                result.drug = drug
                result.confidence = 1.0
                return result

        # --- Fuzzy tier ---
        scored = [self._score(term, drug) for drug in catalog]
        # Stable sort keeps catalog order among equal scores.
        scored.sort(key=lambda s: -s.score)

        s = self._settings
        accepted = [c for c in scored if c.score >= (s.drug_strict_far if c.far else s.drug_strict)]
        near = [c for c in scored if c.score >= (s.drug_loose_far if c.far else s.drug_loose)]

        if accepted:
            best = accepted[0]
            result.drug = best.drug
            result.confidence = best.score
            near = [c for c in near if c.drug.id != best.drug.id]
            logger.debug("Fuzzy drug match %r -> %s (%.2f)", raw_name, best.drug.name, best.score)
        else:
            logger.info("No drug match for %r; %d alternatives", raw_name, len(near))

        result.alternatives = [
            DrugAlternative(id=c.drug.id, name=c.drug.name, confidence=round(c.score, 4))
            for c in near[: s.max_alternatives]
        ]
        return result

    def _score(self, term: str, drug: DrugRecord) -> _Scored:
        best = max(similarity(term, name.lower()) for name in drug.all_names)
        far = abs(len(term) - len(drug.name)) > self._settings.drug_length_tolerance
        return _Scored(drug=drug, score=best, far=far)
