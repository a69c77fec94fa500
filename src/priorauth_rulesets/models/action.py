"""Action models for prior-authorization question graphs.

Actions define what happens after an answer is accepted for a question:
  - GotoAction: advance to another question by qid
  - DecideAction: close the session with an explicit outcome and reason
  - EndAction: leave the graph without a verdict; the decision deriver
    computes the outcome from the collected answers

The discriminated ``Action`` union uses the ``action`` field as its discriminator
so Pydantic can deserialise YAML dicts directly into the correct type.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

Outcome = Literal["approve", "deny", "documentation_required"]


class GotoAction(BaseModel):
    """Advance to another question by qid."""

    action: Literal["goto"] = "goto"
    qid: str


class DecideAction(BaseModel):
    """Terminal decision declared by the question graph."""

    action: Literal["decide"] = "decide"
    outcome: Outcome
    reason: Optional[str] = None


class EndAction(BaseModel):
    """Finish the flow without a declared verdict."""

    action: Literal["end"] = "end"


# Discriminated union: Pydantic picks the right type based on the "action" field.
Action = Annotated[Union[GotoAction, DecideAction, EndAction], Field(discriminator="action")]
