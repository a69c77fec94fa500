"""AnswerNormalizer: turns a raw natural-language answer into a canonical one.

Tiers, in order; the first tier that decides wins:

  1. Triviality gate: trimmed input shorter than 2 characters → clarify.
  2. Type-specific tier:
       - yes_no: synonym sets, exact then whole-word containment; both
         polarities present → clarify
       - multiple_choice: case-insensitive exact option match
       - numeric: first number in the text, checked against the range
       - text: minimum length
  3. Fuzzy tier (multiple_choice): whole-word containment either way, then
     similarity ≥ ``option_fuzzy``.
  4. Semantic tier (multiple_choice): the ``TextClassifier``, bounded by a
     timeout; any failure counts as no match.
  5. Clarify, listing what a valid answer looks like.

The normalizer never guesses: whenever more than one option is plausible it
asks for clarification and returns all of them as candidates.
"""

from __future__ import annotations

import asyncio
import logging
import re

from priorauth_rulesets.constants import (
    MIN_ANSWER_LENGTH,
    NEGATION_WORDS,
    NO_SYNONYMS,
    YES_SYNONYMS,
    MatchSettings,
)
from priorauth_rulesets.interfaces import TextClassifier
from priorauth_rulesets.models.match import MatchCandidate, MatchResult
from priorauth_rulesets.models.question import (
    MultipleChoiceQuestion,
    NumericQuestion,
    Question,
    TextQuestion,
    YesNoQuestion,
)
from priorauth_rulesets.similarity import similarity

logger = logging.getLogger(__name__)

# digits glued to a preceding letter (the 1 in "A1C") are not a number
_NUMBER_RE = re.compile(r"(?<![\w.])-?\d+(?:\.\d+)?")
_WORD_RE = re.compile(r"[a-z0-9']+")
_TRIM_CHARS = " \t\n.,!?;:\"'"


def contains_phrase(haystack: str, needle: str) -> bool:
    """True if *needle* occurs in *haystack* as whole words."""
    if not needle:
        return False
    return re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", haystack) is not None


def _options_hint(options: list[str]) -> str:
    return ", ".join(options)


class AnswerNormalizer:
    """Runs the matching tiers for one answer against one question node.

    Args:
        classifier: optional semantic tier; when None the tier is skipped
        settings: thresholds and timeouts; defaults to ``MatchSettings()``
    """

    def __init__(
        self,
        classifier: TextClassifier | None = None,
        settings: MatchSettings | None = None,
    ) -> None:
        self._classifier = classifier
        self._settings = settings or MatchSettings()

    async def normalize(self, raw_answer: str, node: Question) -> MatchResult:
        """Return the canonical answer for *node*, or a clarification request."""
        text = (raw_answer or "").strip()
        if len(text) < MIN_ANSWER_LENGTH:
            return MatchResult.clarify(
                "too_short",
                "I didn't catch that. Could you give a more complete answer?",
            )

        if isinstance(node, YesNoQuestion):
            return self._match_yes_no(text)
        if isinstance(node, NumericQuestion):
            return self._match_numeric(text, node)
        if isinstance(node, TextQuestion):
            return self._match_text(text, node)
        if isinstance(node, MultipleChoiceQuestion):
            return await self._match_choice(text, node)
        raise ValueError(f"Unsupported question type: {type(node).__name__}")

    # ------------------------------------------------------------------
    # Type-specific tiers
    # ------------------------------------------------------------------

    def _match_yes_no(self, text: str) -> MatchResult:
        lowered = text.lower().strip(_TRIM_CHARS)
        if lowered in YES_SYNONYMS:
            return MatchResult.accept("yes", "exact")
        if lowered in NO_SYNONYMS:
            return MatchResult.accept("no", "exact")

        tokens = _WORD_RE.findall(lowered)
        words = set(tokens)
        has_yes = bool(words & YES_SYNONYMS)
        has_no = bool(words & NO_SYNONYMS)
        negated = any(
            prev in NEGATION_WORDS and word in (YES_SYNONYMS | NO_SYNONYMS)
            for prev, word in zip(tokens, tokens[1:])
        )
        if negated or (has_yes and has_no):
            heard = "a negated answer" if negated else "both yes and no"
            return MatchResult.clarify(
                "ambiguous",
                f"I heard {heard}. Please answer with a clear yes or no.",
                [MatchCandidate(option="yes"), MatchCandidate(option="no")],
                tier="pattern",
            )
        if has_yes:
            return MatchResult.accept("yes", "pattern")
        if has_no:
            return MatchResult.accept("no", "pattern")
        return MatchResult.clarify("unrecognized", "Please answer yes or no.")

    def _match_numeric(self, text: str, node: NumericQuestion) -> MatchResult:
        found = _NUMBER_RE.search(text)
        bounds = node.validation
        if found is None:
            msg = "Please provide a numeric value"
            if bounds is not None:
                msg += f" between {bounds.describe()}"
            return MatchResult.clarify("not_numeric", msg + ".")

        value = float(found.group())
        if bounds is not None and not bounds.contains(value):
            return MatchResult.clarify(
                "out_of_range",
                f"{value:g} is outside the expected range. "
                f"Please provide a value between {bounds.describe()}.",
                tier="pattern",
            )
        return MatchResult.accept(value, "pattern")

    def _match_text(self, text: str, node: TextQuestion) -> MatchResult:
        min_length = node.min_length or self._settings.text_min_length
        if len(text) < min_length:
            return MatchResult.clarify(
                "too_short",
                f"Please provide a bit more detail (at least {min_length} characters).",
            )
        return MatchResult.accept(text, "exact")

    async def _match_choice(self, text: str, node: MultipleChoiceQuestion) -> MatchResult:
        lowered = text.lower().strip(_TRIM_CHARS)

        # --- Exact ---
        for option in node.options:
            if option.lower() == lowered:
                return MatchResult.accept(option, "exact")

        # --- Fuzzy: containment ---
        contained = [
            o for o in node.options
            if contains_phrase(lowered, o.lower()) or contains_phrase(o.lower(), lowered)
        ]
        if contained:
            return self._decide(contained, [1.0] * len(contained), "fuzzy")

        # --- Fuzzy: similarity ---
        scored = [(o, similarity(lowered, o.lower())) for o in node.options]
        close = [(o, s) for o, s in scored if s >= self._settings.option_fuzzy]
        if close:
            return self._decide([o for o, _ in close], [s for _, s in close], "fuzzy")

        # --- Semantic ---
        semantic = await self._semantic(text, node)
        if semantic is not None:
            return semantic

        return MatchResult.clarify(
            "unrecognized",
            f"I couldn't match that answer. Please choose one of: {_options_hint(node.options)}.",
            [MatchCandidate(option=o, confidence=0.0) for o in node.options],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _decide(options: list[str], confidences: list[float], tier: str) -> MatchResult:
        """Accept a single candidate; clarify when there are several."""
        if len(options) == 1:
            return MatchResult.accept(options[0], tier)
        candidates = [
            MatchCandidate(option=o, confidence=round(c, 4))
            for o, c in zip(options, confidences)
        ]
        return MatchResult.clarify(
            "ambiguous",
            f"That could mean more than one answer. Did you mean: {_options_hint(options)}?",
            candidates,
            tier=tier,
        )

    async def _semantic(self, text: str, node: MultipleChoiceQuestion) -> MatchResult | None:
        """Consult the classifier; None means the tier had nothing to say."""
        if self._classifier is None:
            return None
        try:
            verdict = await asyncio.wait_for(
                self._classifier.match_option(node.question, list(node.options), text),
                timeout=self._settings.semantic_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Semantic match timed out for %s after %.1fs", node.qid, self._settings.semantic_timeout)
            return None
        except Exception as exc:
            logger.warning("Semantic match failed for %s: %s", node.qid, exc)
            return None

        by_lower = {o.lower(): o for o in node.options}
        plausible: list[str] = []
        names = ([verdict.option] if verdict.option else []) + list(verdict.possible_matches)
        for name in names:
            option = by_lower.get(str(name).lower().strip())
            if option is not None and option not in plausible:
                plausible.append(option)

        if not plausible:
            return None
        if len(plausible) == 1:
            if not verdict.matched:
                return None
            logger.debug("Semantic match %s: %r -> %r", node.qid, text, plausible[0])
            return MatchResult.accept(plausible[0], "semantic")
        return self._decide(plausible, [verdict.confidence] * len(plausible), "semantic")
