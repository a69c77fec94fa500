"""Session management endpoints — create, get, list and end sessions.

Session ids are opaque tokens issued by ``POST /sessions``.
"""

from fastapi import APIRouter, Depends

from priorauth_rulesets.engine import IntakeEngine
from priorauth_rulesets.models.session import SessionSummary

from priorauth_server.dependencies import get_engine

router = APIRouter(tags=["sessions"])


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sessions", status_code=201)
async def create_session(
    engine: IntakeEngine = Depends(get_engine),
) -> SessionSummary:
    """Create a new session in the intake phase.  Returns 201."""
    return await engine.create_session()


@router.get("/sessions")
async def list_sessions(
    engine: IntakeEngine = Depends(get_engine),
) -> list[SessionSummary]:
    """List sessions that have not been ended, most recent first."""
    return await engine.list_active_sessions()


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    engine: IntakeEngine = Depends(get_engine),
) -> SessionSummary:
    """Get the session summary.  Raises 404 if the session does not exist."""
    return await engine.get_session_summary(session_id)


@router.post("/sessions/{session_id}/end")
async def end_session(
    session_id: str,
    engine: IntakeEngine = Depends(get_engine),
) -> SessionSummary:
    """End the session.  Raises 409 if it was already ended."""
    return await engine.end_session(session_id)
