"""Question node models for prior-authorization question graphs.

Each node type defines its answer domain and how an accepted answer maps to
the next action:

    - multiple_choice: one of a fixed, ordered option list; per-option
      transitions with an optional ``default``
    - yes_no: binary answer with ``on_yes`` / ``on_no`` branches
    - numeric: a number, optionally bounded by ``validation``; the first
      matching entry of ``ranges`` wins, else ``default``
    - text: free text of a minimum length; unconditional ``next``

Every node must have a fallback so traversal never dead-ends.  This is
checked when the node is constructed, so a malformed YAML file fails at
load time instead of mid-session.

The discriminated ``Question`` union uses ``question_type`` as its discriminator.
The ``question_mapper`` dict maps type strings to their Pydantic classes.
"""

from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .action import Action

Role = Literal["contraindication", "screening"]


# --- Base question type ---

class BaseQuestion(BaseModel):
    """Fields shared by all question types.

    ``role`` tags nodes the decision deriver cares about: a ``yes`` on a
    contraindication node denies, a missing or ``no`` screening node asks for
    documentation.
    """

    qid: str
    question: str
    role: Optional[Role] = None
    required: bool = True


# --- Shared numeric range model ---

class NumericRange(BaseModel):
    """Inclusive numeric interval."""

    min: float
    max: float

    @model_validator(mode="after")
    def _chk(self):
        if self.min > self.max:
            raise ValueError("range min must be <= max")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def describe(self) -> str:
        """Human-readable bounds, e.g. ``6.5 and 15``."""
        return f"{self.min:g} and {self.max:g}"


class RangeTransition(NumericRange):
    """A numeric range that carries its own action."""

    then: Action


# --- Question types ---

class MultipleChoiceQuestion(BaseQuestion):
    """Pick one option from an ordered list.

    ``transitions`` maps option text to an action; options without an entry
    fall through to ``default``.
    """

    question_type: Literal["multiple_choice"] = "multiple_choice"
    options: List[str]
    transitions: Dict[str, Action] = {}
    default: Optional[Action] = None

    @model_validator(mode="after")
    def _chk(self):
        if not self.options:
            raise ValueError(f"{self.qid}: options must not be empty")
        lowered = [o.lower() for o in self.options]
        if len(set(lowered)) != len(lowered):
            raise ValueError(f"{self.qid}: options must be unique (case-insensitive)")
        unknown = [k for k in self.transitions if k.lower() not in lowered]
        if unknown:
            raise ValueError(f"{self.qid}: transitions reference unknown options {unknown}")
        if self.default is None:
            mapped = {k.lower() for k in self.transitions}
            missing = [o for o in self.options if o.lower() not in mapped]
            if missing:
                raise ValueError(
                    f"{self.qid}: no default and no transition for options {missing}"
                )
        return self

    def actions(self) -> List[Action]:
        acts = list(self.transitions.values())
        if self.default is not None:
            acts.append(self.default)
        return acts


class YesNoQuestion(BaseQuestion):
    """Binary question; the canonical answers are ``"yes"`` and ``"no"``."""

    question_type: Literal["yes_no"] = "yes_no"
    on_yes: Action
    on_no: Action

    def actions(self) -> List[Action]:
        return [self.on_yes, self.on_no]


class NumericQuestion(BaseQuestion):
    """Numeric input with optional validation bounds and range routing."""

    question_type: Literal["numeric"] = "numeric"
    validation: Optional[NumericRange] = None
    ranges: List[RangeTransition] = []
    default: Action

    def actions(self) -> List[Action]:
        return [r.then for r in self.ranges] + [self.default]


class TextQuestion(BaseQuestion):
    """Open-ended text; any answer of sufficient length is accepted."""

    question_type: Literal["text"] = "text"
    min_length: Optional[int] = None
    next: Action

    def actions(self) -> List[Action]:
        return [self.next]


# --- Discriminated union of all question types ---

Question = Annotated[
    Union[
        MultipleChoiceQuestion,
        YesNoQuestion,
        NumericQuestion,
        TextQuestion,
    ],
    Field(discriminator="question_type"),
]

# Maps question_type string → Pydantic class for dynamic deserialization from YAML.
question_mapper = {
    "multiple_choice": MultipleChoiceQuestion,
    "yes_no": YesNoQuestion,
    "numeric": NumericQuestion,
    "text": TextQuestion,
}
