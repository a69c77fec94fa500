"""Pydantic models for prior-authorization reference data.

These models mirror the YAML files in ``v1/const/`` and ``v1/rules/``:

  Constants (from v1/const/):
    - DrugRecord: catalog entry with aliases and its question-set reference

  Rules (from v1/rules/question_sets/):
    - QuestionSet: a per-medication question graph plus optional fallback
      rules for the decision deriver
    - Predicate / FallbackRule: "if all predicates hold, decide X"
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, PrivateAttr, model_validator

from .action import Outcome
from .question import Question


# ---------------------------------------------------------------------------
# Constants — v1/const/*.yaml
# ---------------------------------------------------------------------------

class DrugRecord(BaseModel):
    """Drug catalog entry from drugs.yaml.

    ``question_set`` references the id of the QuestionSet that governs this
    drug; several drugs may share one.
    """

    id: str
    name: str
    generic_name: str
    common_names: List[str] = []
    question_set: str
    category: Optional[str] = None
    indication: Optional[str] = None

    @property
    def all_names(self) -> List[str]:
        """Name, generic name and aliases, in that order."""
        return [self.name, self.generic_name, *self.common_names]


# ---------------------------------------------------------------------------
# Rules — v1/rules/question_sets/*.yaml
# ---------------------------------------------------------------------------

class Predicate(BaseModel):
    """A single condition that references a collected answer.

    Operators:
      - eq, ne: equality / inequality
      - lt, le, gt, ge: numeric comparisons
      - between: value is [min, max] inclusive
      - contains, not_contains: substring / element membership
      - contains_any, contains_all: set membership
      - matches: regex match
    """

    qid: str
    op: Literal[
        "eq", "ne", "contains", "not_contains", "matches",
        "contains_any", "contains_all",
        "lt", "le", "gt", "ge", "between",
    ]
    value: Any


class FallbackOutcome(BaseModel):
    """The decision a fallback rule produces."""

    outcome: Outcome
    reason: str


class FallbackRule(BaseModel):
    """If ALL predicates in ``when`` are true, decide ``then``."""

    when: List[Predicate]
    then: FallbackOutcome


class QuestionSet(BaseModel):
    """A per-medication question graph.

    ``start`` names the entry node.  Structural checks that need the whole
    graph (targets exist, acyclic) live in :func:`priorauth_rulesets.graph.validate_question_set`.
    """

    id: str
    name: str
    description: Optional[str] = None
    start: str
    questions: List[Question]
    fallback_rules: List[FallbackRule] = []

    _index: Dict[str, Question] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _build_index(self):
        index: Dict[str, Question] = {}
        for q in self.questions:
            if q.qid in index:
                raise ValueError(f"{self.id}: duplicate qid {q.qid!r}")
            index[q.qid] = q
        if self.start not in index:
            raise ValueError(f"{self.id}: start node {self.start!r} is not defined")
        self._index = index
        return self

    def get(self, qid: str) -> Optional[Question]:
        """Return the node with *qid*, or None."""
        return self._index.get(qid)

    def __contains__(self, qid: str) -> bool:
        return qid in self._index
