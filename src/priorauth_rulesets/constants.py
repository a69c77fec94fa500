"""Prior-authorization constants shared across the SDK.

These values are referenced by the resolver, normalizer, deriver and engine.
Matching thresholds can be overridden via environment variables so that
deployments can tune fuzziness without code changes.  ``MatchSettings``
gathers the tunable ones into a single object that can be injected.
"""

import os
from dataclasses import dataclass

# --- Drug-name resolution thresholds ---
# "Strict" bars decide whether a fuzzy candidate is accepted as the drug;
# "loose" bars decide whether it is offered as a did-you-mean alternative.
# The *_FAR variants apply when the query length differs from the drug name
# length by more than DRUG_LENGTH_TOLERANCE characters.
DRUG_STRICT_THRESHOLD = float(os.getenv("DRUG_STRICT_THRESHOLD", "0.80"))
DRUG_STRICT_THRESHOLD_FAR = float(os.getenv("DRUG_STRICT_THRESHOLD_FAR", "0.85"))
DRUG_LOOSE_THRESHOLD = float(os.getenv("DRUG_LOOSE_THRESHOLD", "0.70"))
DRUG_LOOSE_THRESHOLD_FAR = float(os.getenv("DRUG_LOOSE_THRESHOLD_FAR", "0.75"))
DRUG_LENGTH_TOLERANCE = 2
MAX_DRUG_ALTERNATIVES = 3

# --- Answer normalization ---
# Minimum similarity for the fuzzy tier on multiple-choice options.
OPTION_FUZZY_THRESHOLD = float(os.getenv("OPTION_FUZZY_THRESHOLD", "0.70"))
# Answers shorter than this (after trimming) are rejected outright.
MIN_ANSWER_LENGTH = 2
# Default minimum length for free-text answers.
TEXT_MIN_LENGTH = int(os.getenv("TEXT_MIN_LENGTH", "3"))
# Seconds to wait for the semantic (classifier) tier before giving up.
SEMANTIC_MATCH_TIMEOUT = float(os.getenv("SEMANTIC_MATCH_TIMEOUT", "5.0"))

YES_SYNONYMS: frozenset[str] = frozenset(
    {"yes", "y", "yeah", "yep", "sure", "okay", "correct", "right", "true"}
)
NO_SYNONYMS: frozenset[str] = frozenset(
    {"no", "n", "nope", "nah", "negative", "false", "incorrect", "wrong"}
)
# A yes/no synonym right after one of these ("not sure", "not true") is a
# conflict, not the synonym's polarity.
NEGATION_WORDS: frozenset[str] = frozenset({"not", "never", "don't", "isn't", "wasn't"})

# --- Decisions ---
OUTCOMES: tuple[str, ...] = ("approve", "deny", "documentation_required")

# Recorded when no rule supplies a more specific reason.
DEFAULT_DECISION_REASON = "Based on clinical criteria evaluation"

# Operator-facing text for each outcome.  ``{drug}`` and ``{medication}`` are
# filled in by the engine when those intake fields are known.
DECISION_MESSAGES: dict[str, dict[str, str]] = {
    "approve": {
        "message": (
            "Based on the information provided, the prior authorization for "
            "{drug} has been approved. {medication} will be covered "
            "according to the plan's formulary guidelines."
        ),
        "next_steps": (
            "You can proceed with prescribing the medication. The approval is "
            "valid for the standard duration outlined in the plan documents."
        ),
    },
    "deny": {
        "message": (
            "The prior authorization request for {drug} has been denied based "
            "on the clinical information provided."
        ),
        "next_steps": (
            "You may submit additional clinical documentation for "
            "reconsideration, or discuss alternative treatment options with "
            "the patient."
        ),
    },
    "documentation_required": {
        "message": (
            "Additional clinical documentation is needed to complete the prior "
            "authorization review for {drug}."
        ),
        "next_steps": (
            "Please submit the requested documentation through your usual "
            "channels. Once received, the review can be completed."
        ),
    },
}

# Intake fields collected before the question flow starts, in prompt order.
INTAKE_FIELDS: tuple[str, ...] = ("member_name", "date_of_birth", "drug_name")

INTAKE_PROMPTS: dict[str, str] = {
    "member_name": "What is the member's full name?",
    "date_of_birth": "What is the member's date of birth?",
    "drug_name": "Which medication is being requested?",
}


@dataclass(frozen=True)
class MatchSettings:
    """Tunable matching thresholds, defaulting to the module constants."""

    drug_strict: float = DRUG_STRICT_THRESHOLD
    drug_strict_far: float = DRUG_STRICT_THRESHOLD_FAR
    drug_loose: float = DRUG_LOOSE_THRESHOLD
    drug_loose_far: float = DRUG_LOOSE_THRESHOLD_FAR
    drug_length_tolerance: int = DRUG_LENGTH_TOLERANCE
    max_alternatives: int = MAX_DRUG_ALTERNATIVES
    option_fuzzy: float = OPTION_FUZZY_THRESHOLD
    text_min_length: int = TEXT_MIN_LENGTH
    semantic_timeout: float = SEMANTIC_MATCH_TIMEOUT
