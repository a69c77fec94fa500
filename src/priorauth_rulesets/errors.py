"""Exceptions raised by the SDK.

All errors subclass ``ValueError`` (via :class:`PriorAuthError`) so the
server's global ``ValueError`` handler catches them.  The not-found family
becomes 404 and :class:`SessionClosed` becomes 409; the messages also carry
those keywords for callers that only see a plain ``ValueError``.

Answer-interpretation problems are never exceptions: they come back as a
clarification step.
"""


class PriorAuthError(ValueError):
    """Base class for every SDK error."""


class NotFoundError(PriorAuthError):
    """A referenced entity does not exist."""


class SessionNotFound(NotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: session_id={session_id}")
        self.session_id = session_id


class GraphNotFound(NotFoundError):
    def __init__(self, question_set_id: str) -> None:
        super().__init__(f"Question set not found: {question_set_id}")
        self.question_set_id = question_set_id


class NodeNotFound(NotFoundError):
    def __init__(self, question_set_id: str, qid: str) -> None:
        super().__init__(f"Question not found: {question_set_id}/{qid}")
        self.question_set_id = question_set_id
        self.qid = qid


class DrugNotFound(NotFoundError):
    def __init__(self, drug_id: str) -> None:
        super().__init__(f"Drug not found: {drug_id}")
        self.drug_id = drug_id


class SessionClosed(PriorAuthError):
    """Mutation attempted on a session that is complete or ended."""

    def __init__(self, session_id: str, phase: str) -> None:
        super().__init__(f"Session is closed: session_id={session_id} phase={phase}")
        self.session_id = session_id
        self.phase = phase


class InvalidQuestionSet(PriorAuthError):
    """A question set failed structural validation at load time."""
