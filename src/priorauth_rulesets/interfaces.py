"""Abstract interface for the text-classification collaborator.

A single ``TextClassifier`` capability backs both places where the engine
needs language understanding beyond string matching:

  - the semantic tier of the answer normalizer (``match_option``)
  - intake-field extraction from free text (``extract_intake_fields``)

Two implementations ship with the SDK, selected by configuration:

    RuleBasedClassifier  — abbreviations, modifier stripping, regexes
    LLMClassifier        — OpenAI-compatible chat-completions endpoint

Typical wiring::

    classifier = RuleBasedClassifier()          # or LLMClassifier(...)
    engine = IntakeEngine(store, classifier=classifier)

Implementations must treat failures as "no answer": return an unmatched
``SemanticMatch`` or an empty ``IntakeExtraction`` instead of raising.
The normalizer additionally guards calls with a timeout.
"""

from abc import ABC, abstractmethod

from priorauth_rulesets.models.match import IntakeExtraction, SemanticMatch


class TextClassifier(ABC):
    """Interface for semantic option matching and intake extraction."""

    @abstractmethod
    async def match_option(
        self,
        question_text: str,
        options: list[str],
        raw_answer: str,
    ) -> SemanticMatch:
        """Decide which of *options* the operator meant by *raw_answer*.

        Parameters
        ----------
        question_text:
            The question as it was asked, for context.
        options:
            The node's option labels, in display order.
        raw_answer:
            The operator's answer, untouched.

        Returns
        -------
        SemanticMatch
            ``option`` set when a single option is a confident match;
            ``possible_matches`` lists every plausible option.  Options not
            in *options* are discarded by the caller.
        """
        ...

    @abstractmethod
    async def extract_intake_fields(
        self,
        text: str,
        missing: list[str] | None = None,
    ) -> IntakeExtraction:
        """Pull member name, date of birth and drug name out of *text*.

        Parameters
        ----------
        text:
            Free-form intake utterance.
        missing:
            Field names still needed, as a hint; implementations may ignore it.

        Returns
        -------
        IntakeExtraction
            Fields that could not be found are left unset.
        """
        ...
