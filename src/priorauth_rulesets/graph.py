"""Question graph traversal and load-time validation.

A ``QuestionSet`` is a directed graph: nodes are questions, edges are the
``goto`` actions their transitions produce.  ``decide`` and ``end`` actions
are terminals.  Validation guarantees every ``goto`` lands on a defined node
and that no path from ``start`` revisits a node, so any walk terminates.
"""

from __future__ import annotations

import logging
from typing import Iterator, Union

from priorauth_rulesets.errors import InvalidQuestionSet, NodeNotFound
from priorauth_rulesets.models.action import Action, GotoAction
from priorauth_rulesets.models.question import (
    MultipleChoiceQuestion,
    NumericQuestion,
    Question,
    TextQuestion,
    YesNoQuestion,
)
from priorauth_rulesets.models.schema import QuestionSet
from priorauth_rulesets.models.session import QuestionPayload

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lookup and transitions
# ------------------------------------------------------------------

def get_node(graph: QuestionSet, node_id: str) -> Question:
    """Return the node *node_id* of *graph*.

    Raises:
        NodeNotFound: if the graph has no such node.
    """
    node = graph.get(node_id)
    if node is None:
        raise NodeNotFound(graph.id, node_id)
    return node


def next_step(node: Question, canonical_answer: Union[float, str]) -> Action:
    """Map an accepted answer to the node's next action.

    ``canonical_answer`` must already be normalized: an option label for
    multiple_choice, ``"yes"``/``"no"`` for yes_no, a number for numeric.
    """
    if isinstance(node, MultipleChoiceQuestion):
        wanted = str(canonical_answer).lower()
        for option, action in node.transitions.items():
            if option.lower() == wanted:
                return action
        if node.default is None:
            raise ValueError(f"{node.qid}: no transition for answer {canonical_answer!r}")
        return node.default

    if isinstance(node, YesNoQuestion):
        if canonical_answer == "yes":
            return node.on_yes
        if canonical_answer == "no":
            return node.on_no
        raise ValueError(f"{node.qid}: yes_no answer must be 'yes' or 'no', got {canonical_answer!r}")

    if isinstance(node, NumericQuestion):
        value = float(canonical_answer)
        for rng in node.ranges:
            if rng.contains(value):
                return rng.then
        return node.default

    if isinstance(node, TextQuestion):
        return node.next

    raise ValueError(f"Unsupported question type: {type(node).__name__}")


def question_payload(node: Question, text_min_length: int) -> QuestionPayload:
    """Flatten a node into what API consumers need to ask it."""
    options = None
    constraints = None
    if isinstance(node, MultipleChoiceQuestion):
        options = list(node.options)
    elif isinstance(node, NumericQuestion) and node.validation is not None:
        constraints = {"min": node.validation.min, "max": node.validation.max}
    elif isinstance(node, TextQuestion):
        constraints = {"min_length": node.min_length or text_min_length}
    return QuestionPayload(
        qid=node.qid,
        question=node.question,
        question_type=node.question_type,
        options=options,
        constraints=constraints,
    )


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------

def _goto_targets(node: Question) -> list[str]:
    return [a.qid for a in node.actions() if isinstance(a, GotoAction)]


def iter_reachable(graph: QuestionSet) -> Iterator[Question]:
    """Yield each node reachable from ``start`` once, breadth-first."""
    seen = {graph.start}
    queue = [graph.start]
    while queue:
        qid = queue.pop(0)
        node = graph.get(qid)
        if node is None:
            continue
        yield node
        for target in _goto_targets(node):
            if target not in seen:
                seen.add(target)
                queue.append(target)


def validate_question_set(graph: QuestionSet) -> None:
    """Check that every goto target exists and the graph is acyclic.

    Unreachable nodes are allowed but logged.

    Raises:
        InvalidQuestionSet: on a dangling goto or a cycle.
    """
    for node in graph.questions:
        for target in _goto_targets(node):
            if target not in graph:
                raise InvalidQuestionSet(
                    f"{graph.id}: {node.qid} points to undefined question {target!r}"
                )

    # Iterative DFS with white/grey/black colouring; a grey hit is a back edge.
    colour: dict[str, int] = {}
    stack: list[tuple[str, Iterator[str]]] = [(graph.start, iter(_goto_targets(get_node(graph, graph.start))))]
    colour[graph.start] = 1
    while stack:
        qid, children = stack[-1]
        child = next(children, None)
        if child is None:
            colour[qid] = 2
            stack.pop()
            continue
        state = colour.get(child, 0)
        if state == 1:
            raise InvalidQuestionSet(f"{graph.id}: cycle detected at {qid} -> {child}")
        if state == 0:
            colour[child] = 1
            stack.append((child, iter(_goto_targets(get_node(graph, child)))))

    unreachable = [q.qid for q in graph.questions if q.qid not in colour]
    if unreachable:
        logger.warning("%s: unreachable questions %s", graph.id, unreachable)
