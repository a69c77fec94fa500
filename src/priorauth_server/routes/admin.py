"""Admin endpoints — manual session sweep.

Protected by the ``ADMIN_API_KEY`` setting.  Every request must include an
``X-Admin-Key`` header whose value matches the configured key.  Returns 401
if missing, 403 if wrong or if admin endpoints are disabled.
"""

from datetime import timedelta

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from priorauth_rulesets.engine import IntakeEngine

from priorauth_server.dependencies import get_engine, require_admin_key

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class SweepResult(BaseModel):
    """Response body for the sweep operation."""
    swept: int
    session_ids: list[str]


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/sweep")
async def sweep_sessions(
    request: Request,
    max_idle_hours: float | None = Query(None, ge=0),
    engine: IntakeEngine = Depends(get_engine),
    _key: str = Depends(require_admin_key),
) -> SweepResult:
    """Drop sessions idle longer than ``max_idle_hours``.

    Defaults to the server's configured idle age.  ``0`` drops every
    session.
    """
    if max_idle_hours is None:
        max_idle_hours = request.app.state.settings.session_max_idle_hours
    swept = await engine.sweep_idle(timedelta(hours=max_idle_hours))
    return SweepResult(swept=len(swept), session_ids=swept)
