"""RuleBasedClassifier: deterministic TextClassifier with no external calls.

Option matching expands clinical abbreviations ("ra", "t2dm", "uc") and
spelled-out numbers, then accepts an option when every significant word of
the option appears in the answer.  Extra words in the answer (severity
modifiers, "mellitus", ...) do not hurt.

Intake extraction uses keyword-anchored regexes ("my name is ...",
"born ...", "requesting ...").
"""

from __future__ import annotations

import logging
import re

from priorauth_rulesets.interfaces import TextClassifier
from priorauth_rulesets.models.match import IntakeExtraction, SemanticMatch

logger = logging.getLogger(__name__)

# Whole-word abbreviations → expansion, applied to answers before matching.
ABBREVIATIONS: dict[str, str] = {
    "ra": "rheumatoid arthritis",
    "psa": "psoriatic arthritis",
    "pso": "psoriasis",
    "uc": "ulcerative colitis",
    "cd": "crohns disease",
    "ibd": "inflammatory bowel disease",
    "ad": "atopic dermatitis",
    "eczema": "atopic dermatitis",
    "t1d": "type 1 diabetes",
    "t1dm": "type 1 diabetes",
    "t2d": "type 2 diabetes",
    "t2dm": "type 2 diabetes",
    "dm2": "type 2 diabetes",
    "niddm": "type 2 diabetes",
    "iddm": "type 1 diabetes",
    "tb": "tuberculosis",
}

_NUMBER_WORDS: dict[str, str] = {
    "one": "1", "two": "2", "three": "3", "four": "4", "five": "5",
    "six": "6", "ten": "10", "ii": "2",
}

# Words that carry no meaning when comparing an answer to an option.
_FILLER: frozenset[str] = frozenset({
    "a", "an", "the", "of", "to", "and", "or", "with", "has", "have", "is",
    "it", "its", "patient", "patients", "pt", "diagnosed", "diagnosis",
    "confirmed", "history", "than", "for",
})

_FULL_MATCH_CONFIDENCE = 0.9
_PARTIAL_COVERAGE = 0.5

# --- Intake patterns ---
_STOP_WORDS = (
    r"born|dob|date|birthday|and|requesting|request|drug|medication|"
    r"prescribing|for|who|is"
)
_NAME_RE = re.compile(
    r"(?:name is|named|called|patient is|member is)\s+"
    r"((?:(?!(?:" + _STOP_WORDS + r")\b)[A-Za-z][A-Za-z'\-]*\s*){1,4})",
    re.IGNORECASE,
)
_DOB_RE = re.compile(
    r"(?:born(?:\s+on)?|birthday(?:\s+is)?|dob(?:\s+is)?|date of birth(?:\s+is)?)"
    r"\s*:?\s*([0-9]{1,4}[/\-.][0-9]{1,2}[/\-.][0-9]{1,4})",
    re.IGNORECASE,
)
_BARE_DATE_RE = re.compile(r"\b(\d{4}-\d{1,2}-\d{1,2}|\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4})\b")
_DRUG_RE = re.compile(
    r"(?:drug|medication|prescribing|requesting|request for|prescription for)"
    r"\s+(?:is\s+|for\s+)?"
    r"((?:(?!(?:" + _STOP_WORDS + r")\b)[A-Za-z][A-Za-z\-]*\s*){1,3})",
    re.IGNORECASE,
)
_ALPHA_WORDS_RE = re.compile(r"^[A-Za-z][A-Za-z'\-]*(?:\s+[A-Za-z][A-Za-z'\-]*){0,3}$")


def tokenize(text: str) -> list[str]:
    """Lowercase words with apostrophes dropped, abbreviations expanded."""
    words = re.findall(r"[a-z0-9]+", text.lower().replace("'", ""))
    out: list[str] = []
    for w in words:
        w = _NUMBER_WORDS.get(w, w)
        out.extend(ABBREVIATIONS.get(w, w).split())
    return out


def significant(tokens: list[str]) -> set[str]:
    return {t for t in tokens if t not in _FILLER}


class RuleBasedClassifier(TextClassifier):
    """TextClassifier built from abbreviation tables and regexes."""

    async def match_option(
        self,
        question_text: str,
        options: list[str],
        raw_answer: str,
    ) -> SemanticMatch:
        answer_words = set(tokenize(raw_answer))
        if not answer_words:
            return SemanticMatch()

        full: list[str] = []
        partial: list[str] = []
        for option in options:
            wanted = significant(tokenize(option))
            if not wanted:
                continue
            coverage = len(wanted & answer_words) / len(wanted)
            if coverage == 1.0:
                full.append(option)
            elif coverage >= _PARTIAL_COVERAGE:
                partial.append(option)

        if len(full) == 1:
            return SemanticMatch(
                matched=True,
                option=full[0],
                confidence=_FULL_MATCH_CONFIDENCE,
                possible_matches=full,
            )
        if full:
            return SemanticMatch(confidence=_FULL_MATCH_CONFIDENCE, possible_matches=full)
        if len(partial) > 1:
            return SemanticMatch(confidence=_PARTIAL_COVERAGE, possible_matches=partial)
        return SemanticMatch()

    async def extract_intake_fields(
        self,
        text: str,
        missing: list[str] | None = None,
    ) -> IntakeExtraction:
        found = IntakeExtraction()
        text = text.strip()

        m = _NAME_RE.search(text)
        if m:
            found.member_name = m.group(1).strip().title()

        m = _DOB_RE.search(text) or _BARE_DATE_RE.search(text)
        if m:
            found.date_of_birth = m.group(1)

        m = _DRUG_RE.search(text)
        if m:
            found.drug_name = m.group(1).strip()

        # A short bare answer fills the first field still being asked for.
        if not found.populated() and missing and _ALPHA_WORDS_RE.match(text):
            if missing[0] == "member_name":
                found.member_name = text.title()
            elif missing[0] == "drug_name":
                found.drug_name = text

        logger.debug("Intake extraction: %s", found.populated())
        return found
