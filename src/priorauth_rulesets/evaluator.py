"""DecisionDeriver: fallback decision when a flow ends without a verdict.

Question graphs normally close sessions with an explicit ``decide`` action.
When traversal reaches an ``end`` action instead, the engine calls
:meth:`DecisionDeriver.derive`, which applies, in order:

  1. The question set's ``fallback_rules`` (predicate rules over answers;
     first match wins)
  2. Any ``contraindication`` node answered "yes" → deny
  3. Any required ``screening`` node unanswered or answered "no"
     → documentation_required
  4. Otherwise → approve

The deriver is never consulted when the graph declared a decision.
"""

from __future__ import annotations

import logging
import operator
import re
from typing import Any

from priorauth_rulesets.constants import DEFAULT_DECISION_REASON
from priorauth_rulesets.models.schema import Predicate, QuestionSet
from priorauth_rulesets.models.session import Decision

logger = logging.getLogger(__name__)

_NUMERIC_OPS = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
}


class DecisionDeriver:
    """Derives a decision from collected answers and node roles."""

    def derive(self, graph: QuestionSet, answers: dict[str, Any]) -> Decision:
        """Return the fallback decision for *answers* collected on *graph*.

        Args:
            graph: the question set the answers belong to
            answers: canonical answers keyed by qid

        Returns:
            A ``Decision`` with ``derived=True`` and an explicit reason.
        """
        for rule in graph.fallback_rules:
            if all(self._eval_predicate(pred, answers) for pred in rule.when):
                logger.debug("%s: fallback rule matched -> %s", graph.id, rule.then.outcome)
                return Decision(outcome=rule.then.outcome, reason=rule.then.reason, derived=True)

        for node in graph.questions:
            if node.role == "contraindication" and answers.get(node.qid) == "yes":
                return Decision(
                    outcome="deny",
                    reason="Patient has contraindications to therapy",
                    derived=True,
                )

        for node in graph.questions:
            if node.role == "screening" and node.required and answers.get(node.qid) in (None, "no"):
                return Decision(
                    outcome="documentation_required",
                    reason=f"Screening not documented: {node.question}",
                    derived=True,
                )

        return Decision(outcome="approve", reason=DEFAULT_DECISION_REASON, derived=True)

    # ------------------------------------------------------------------
    # Predicate evaluation
    # ------------------------------------------------------------------

    def _eval_predicate(self, pred: Predicate, answers: dict[str, Any]) -> bool:
        """Evaluate a single predicate against the answers dict.

        If the referenced qid has not been answered, the predicate
        evaluates to False (the rule won't match).
        """
        answer = answers.get(pred.qid)
        if answer is None:
            return False
        return self._compare(pred.op, answer, pred.value)

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to an answer and an expected value.

        Numeric operators coerce both sides to float; an answer that is not
        numeric simply fails the comparison.
        """
        if op == "eq":
            if isinstance(answer, str) and isinstance(value, str):
                return answer.lower() == value.lower()
            return answer == value
        if op == "ne":
            return not DecisionDeriver._compare("eq", answer, value)

        if op in _NUMERIC_OPS or op == "between":
            try:
                number = float(answer)
            except (TypeError, ValueError):
                return False
            if op == "between":
                low, high = (float(v) for v in value)
                return low <= number <= high
            return _NUMERIC_OPS[op](number, float(value))

        # --- String membership (case-insensitive) ---
        ans_str = str(answer).lower()
        if op == "contains":
            return str(value).lower() in ans_str
        if op == "not_contains":
            return str(value).lower() not in ans_str
        if op == "contains_any":
            return any(str(v).lower() in ans_str for v in value)
        if op == "contains_all":
            return all(str(v).lower() in ans_str for v in value)

        if op == "matches":
            return bool(re.search(str(value), str(answer), re.IGNORECASE))

        logger.warning("Unknown predicate operator: %s", op)
        return False
