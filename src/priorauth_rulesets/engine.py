"""IntakeEngine — the session state machine for prior-authorization intake.

Stateless engine pattern: each call loads the session from the
``SessionStore``, computes the next step, writes the session back and
returns the step.  The only in-memory state is a per-session
``asyncio.Lock`` that serializes overlapping calls for the same session.

Phases:
    intake         collect member name, date of birth and drug name;
                   resolving the drug selects the question set
    question_flow  walk the question graph one answer at a time
    complete       a decision has been recorded

``end_session`` closes a session from any phase; afterwards every mutation
raises ``SessionClosed``.

Every step method returns a ``StepResult``; callers dispatch on ``type``:
``intake``, ``next_question``, ``clarification``, ``complete`` or ``error``.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncIterator
from datetime import timedelta

from priorauth_rulesets.classifiers.rule_based import RuleBasedClassifier
from priorauth_rulesets.constants import (
    DECISION_MESSAGES,
    DEFAULT_DECISION_REASON,
    INTAKE_FIELDS,
    INTAKE_PROMPTS,
    MatchSettings,
)
from priorauth_rulesets.errors import SessionClosed, SessionNotFound
from priorauth_rulesets.evaluator import DecisionDeriver
from priorauth_rulesets.graph import get_node, next_step, question_payload
from priorauth_rulesets.interfaces import TextClassifier
from priorauth_rulesets.models.action import DecideAction, GotoAction
from priorauth_rulesets.models.match import IntakeExtraction, MatchCandidate
from priorauth_rulesets.models.question import Question
from priorauth_rulesets.models.session import (
    AnswerRecord,
    ClarificationStep,
    Decision,
    DecisionStep,
    ErrorStep,
    IntakeStep,
    QuestionPayload,
    QuestionStep,
    Session,
    SessionPhase,
    SessionStatus,
    SessionSummary,
    StepResult,
    utcnow,
)
from priorauth_rulesets.normalizer import AnswerNormalizer
from priorauth_rulesets.resolver import DrugResolver
from priorauth_rulesets.ruleset import RulesetStore
from priorauth_rulesets.store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class IntakeEngine:
    """Orchestrates intake, question traversal and decisions.

    Args:
        store: a loaded :class:`RulesetStore`
        sessions: session persistence; defaults to an in-memory store
        classifier: semantic tier and intake extractor; defaults to
            :class:`RuleBasedClassifier`
        settings: matching thresholds; defaults to ``MatchSettings()``
    """

    def __init__(
        self,
        store: RulesetStore,
        sessions: SessionStore | None = None,
        classifier: TextClassifier | None = None,
        settings: MatchSettings | None = None,
    ) -> None:
        self._store = store
        self._sessions = sessions if sessions is not None else InMemorySessionStore()
        self._settings = settings or MatchSettings()
        self._classifier = classifier if classifier is not None else RuleBasedClassifier()
        self._resolver = DrugResolver(store.drugs, store.corrections, self._settings)
        self._normalizer = AnswerNormalizer(self._classifier, self._settings)
        self._deriver = DecisionDeriver()
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def resolver(self) -> DrugResolver:
        return self._resolver

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def create_session(self) -> SessionSummary:
        """Create a new session in the ``intake`` phase."""
        session = Session(session_id=uuid.uuid4().hex)
        await self._sessions.put(session)
        logger.info("Session created: %s", session.session_id)
        return self._to_summary(session)

    async def end_session(self, session_id: str) -> SessionSummary:
        """Close the session.  Allowed from any phase, but only once.

        Raises:
            SessionNotFound: unknown session id
            SessionClosed: the session was already ended
        """
        async with self._session_lock(session_id):
            session = await self._load(session_id)
            if session.ended:
                raise SessionClosed(session_id, "ended")
            session.status = SessionStatus.COMPLETED
            session.ended_at = utcnow()
            session.touch()
            await self._sessions.put(session)
        logger.info("Session ended: %s (phase=%s)", session_id, session.phase.value)
        return self._to_summary(session)

    async def get_session_summary(self, session_id: str) -> SessionSummary:
        """Read-only view of the session for presentation."""
        return self._to_summary(await self._load(session_id))

    async def get_current_question(self, session_id: str) -> QuestionPayload | None:
        """The question awaiting an answer, or None outside ``question_flow``."""
        session = await self._load(session_id)
        if session.ended or session.phase != SessionPhase.QUESTION_FLOW:
            return None
        return self._payload(self._current_node(session))

    async def list_active_sessions(self) -> list[SessionSummary]:
        """Summaries of sessions that have not been ended, newest first."""
        return [self._to_summary(s) for s in await self._sessions.list_sessions()]

    async def sweep_idle(self, max_idle: timedelta) -> list[str]:
        """Drop sessions idle longer than *max_idle*; return their ids."""
        swept = await self._sessions.sweep(max_idle)
        for sid in swept:
            self._locks.pop(sid, None)
        for sid, lock in list(self._locks.items()):
            if not lock.locked() and await self._sessions.get(sid) is None:
                self._locks.pop(sid, None)
        return swept

    # ==================================================================
    # Intake
    # ==================================================================

    async def submit_intake_field(self, session_id: str, field: str, value: str) -> StepResult:
        """Record one intake field.

        ``drug_name`` is resolved against the catalog; on success the
        session moves to ``question_flow`` and the first question is
        returned.  An unresolved name returns a clarification carrying any
        did-you-mean alternatives.

        Raises:
            ValueError: unknown field name
            SessionNotFound / SessionClosed / GraphNotFound
        """
        if field not in INTAKE_FIELDS:
            raise ValueError(f"Unknown intake field: {field!r} (expected one of {list(INTAKE_FIELDS)})")
        async with self._session_lock(session_id):
            session = await self._load_open(session_id)
            step = self._apply_intake_field(session, field, value)
            await self._sessions.put(session)
            return step

    async def submit_intake_text(self, session_id: str, text: str) -> StepResult:
        """Extract intake fields from free text and apply whatever was found.

        Fields the classifier could not populate stay unset and are asked
        for again in the returned ``intake`` step.
        """
        async with self._session_lock(session_id):
            session = await self._load_open(session_id)
            if session.phase != SessionPhase.INTAKE:
                return ErrorStep(message="Intake is already complete for this session")

            missing = self._missing_fields(session)
            extracted = await self._extract(text, missing)
            fields = extracted.populated()

            step: StepResult = self._intake_step(session)
            # INTAKE_FIELDS ends with drug_name, so a drug resolution step wins.
            for field in INTAKE_FIELDS:
                if field in fields:
                    step = self._apply_intake_field(session, field, fields[field])
            if fields:
                await self._sessions.put(session)
            return step

    def _apply_intake_field(self, session: Session, field: str, value: str) -> StepResult:
        value = (value or "").strip()
        if not value:
            return ClarificationStep(reason="too_short", message=INTAKE_PROMPTS[field])

        if field != "drug_name":
            setattr(session.collected, field, value)
            session.touch()
            if session.phase == SessionPhase.INTAKE:
                return self._intake_step(session)
            return QuestionStep(question=self._payload(self._current_node(session)))

        if session.phase != SessionPhase.INTAKE:
            return ErrorStep(message="The medication has already been identified for this session")

        resolution = self._resolver.resolve(value)
        if resolution.drug is None:
            logger.info("Session %s: drug %r not resolved", session.session_id, value)
            candidates = [
                MatchCandidate(option=alt.name, confidence=alt.confidence)
                for alt in resolution.alternatives
            ]
            if candidates:
                names = ", ".join(c.option for c in candidates)
                return ClarificationStep(
                    reason="ambiguous",
                    message=f"I couldn't find '{value}'. Did you mean: {names}?",
                    candidates=candidates,
                )
            return ClarificationStep(
                reason="unrecognized",
                message=f"I couldn't find a medication called '{value}'. Please repeat the medication name.",
            )

        drug = resolution.drug
        graph = self._store.question_set_for(drug)
        session.collected.drug_name = drug.name
        session.collected.drug_id = drug.id
        session.question_set_id = graph.id
        session.current_node_id = graph.start
        session.phase = SessionPhase.QUESTION_FLOW
        session.touch()
        logger.info(
            "Session %s: drug %r resolved to %s (%.2f), question set %s",
            session.session_id, value, drug.id, resolution.confidence, graph.id,
        )
        return QuestionStep(question=self._payload(get_node(graph, graph.start)))

    async def _extract(self, text: str, missing: list[str]) -> IntakeExtraction:
        """Run the intake extractor; failures yield an empty extraction."""
        try:
            return await asyncio.wait_for(
                self._classifier.extract_intake_fields(text, missing),
                timeout=self._settings.semantic_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Intake extraction timed out after %.1fs", self._settings.semantic_timeout)
        except Exception as exc:
            logger.warning("Intake extraction failed: %s", exc)
        return IntakeExtraction()

    @staticmethod
    def _missing_fields(session: Session) -> list[str]:
        return [f for f in INTAKE_FIELDS if not getattr(session.collected, f)]

    def _intake_step(self, session: Session) -> IntakeStep:
        missing = self._missing_fields(session)
        return IntakeStep(
            missing_fields=missing,
            prompt=INTAKE_PROMPTS[missing[0]] if missing else None,
            collected=session.collected.model_copy(),
        )

    # ==================================================================
    # Question flow
    # ==================================================================

    async def submit_answer(self, session_id: str, raw_answer: str) -> StepResult:
        """Interpret *raw_answer* for the current question and advance.

        A clarification leaves the session untouched.  An accepted answer is
        recorded and either moves to the next question or closes the session
        with a decision.  During ``intake`` an ``error`` step is returned.

        Raises:
            SessionNotFound: unknown session id
            SessionClosed: the session is complete or ended
        """
        async with self._session_lock(session_id):
            session = await self._load_open(session_id)
            if session.phase == SessionPhase.INTAKE:
                missing = ", ".join(self._missing_fields(session))
                return ErrorStep(message=f"No question is pending; intake is incomplete (missing: {missing})")

            graph = self._store.get_question_set(session.question_set_id)
            node = get_node(graph, session.current_node_id)
            result = await self._normalizer.normalize(raw_answer, node)
            if result.needs_clarification:
                logger.debug(
                    "Session %s: clarification on %s (%s)",
                    session_id, node.qid, result.clarification_reason,
                )
                return ClarificationStep(
                    reason=result.clarification_reason,
                    message=result.message,
                    candidates=result.candidates,
                    question=self._payload(node),
                )

            answer = result.canonical_answer
            session.answers[node.qid] = answer
            session.history.append(
                AnswerRecord(
                    qid=node.qid,
                    question=node.question,
                    raw_answer=raw_answer,
                    canonical_answer=answer,
                    tier=result.tier,
                )
            )
            session.touch()

            action = next_step(node, answer)
            if isinstance(action, GotoAction):
                session.current_node_id = action.qid
                await self._sessions.put(session)
                return QuestionStep(question=self._payload(get_node(graph, action.qid)))

            if isinstance(action, DecideAction):
                decision = Decision(
                    outcome=action.outcome,
                    reason=action.reason or DEFAULT_DECISION_REASON,
                )
            else:
                decision = self._deriver.derive(graph, session.answers)

            decision = self._render_decision(session, decision)
            session.decision = decision
            session.phase = SessionPhase.COMPLETE
            session.current_node_id = None
            await self._sessions.put(session)
            logger.info(
                "Session %s complete: %s (%s)%s",
                session_id, decision.outcome, decision.reason,
                " [derived]" if decision.derived else "",
            )
            return DecisionStep(decision=decision)

    @staticmethod
    def _render_decision(session: Session, decision: Decision) -> Decision:
        """Attach the operator-facing message and next steps."""
        template = DECISION_MESSAGES[decision.outcome]
        member = session.collected.member_name
        message = template["message"].format(
            drug=session.collected.drug_name or "this medication",
            medication=f"{member}'s medication" if member else "The medication",
        )
        if decision.reason and decision.reason != DEFAULT_DECISION_REASON:
            message += f" The decision is based on: {decision.reason}."
        return decision.model_copy(
            update={"message": message, "next_steps": template["next_steps"]},
        )

    # ==================================================================
    # Internal helpers
    # ==================================================================

    @contextlib.asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the per-session lock.  Unknown ids never get an entry."""
        if await self._sessions.get(session_id) is None:
            raise SessionNotFound(session_id)
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        try:
            async with lock:
                yield
        except SessionNotFound:
            # swept while we waited
            self._locks.pop(session_id, None)
            raise

    async def _load(self, session_id: str) -> Session:
        session = await self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def _load_open(self, session_id: str) -> Session:
        """Load a session that still accepts mutations."""
        session = await self._load(session_id)
        if session.ended:
            raise SessionClosed(session_id, "ended")
        if session.phase == SessionPhase.COMPLETE:
            raise SessionClosed(session_id, session.phase.value)
        return session

    def _current_node(self, session: Session) -> Question:
        graph = self._store.get_question_set(session.question_set_id)
        return get_node(graph, session.current_node_id)

    def _payload(self, node: Question) -> QuestionPayload:
        return question_payload(node, self._settings.text_min_length)

    @staticmethod
    def _to_summary(session: Session) -> SessionSummary:
        c = session.collected
        return SessionSummary(
            session_id=session.session_id,
            status=session.status,
            phase=session.phase,
            member_name=c.member_name,
            date_of_birth=c.date_of_birth,
            drug_name=c.drug_name,
            drug_id=c.drug_id,
            question_set_id=session.question_set_id,
            current_question_id=session.current_node_id,
            answers=dict(session.answers),
            history=list(session.history),
            decision=session.decision,
            created_at=session.created_at,
            updated_at=session.updated_at,
            ended_at=session.ended_at,
        )
