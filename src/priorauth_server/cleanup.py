"""Idle-session reaper.

``run_reaper`` is started as a background task by the app lifespan.  Every
``interval`` seconds it drops sessions whose last update is older than
``max_idle``.  Sessions are in-memory only, so nothing is archived.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from priorauth_rulesets.engine import IntakeEngine

logger = logging.getLogger(__name__)


async def sweep_once(engine: IntakeEngine, max_idle: timedelta) -> int:
    """Run a single sweep and return the number of sessions dropped."""
    swept = await engine.sweep_idle(max_idle)
    if swept:
        logger.info("Reaper dropped %d idle sessions", len(swept))
    return len(swept)


async def run_reaper(
    engine: IntakeEngine,
    max_idle: timedelta,
    interval: float,
) -> None:
    """Sweep forever until cancelled.  Sweep failures are logged, not raised."""
    logger.info("Session reaper started: max_idle=%s interval=%.0fs", max_idle, interval)
    while True:
        await asyncio.sleep(interval)
        try:
            await sweep_once(engine, max_idle)
        except Exception:
            logger.exception("Session sweep failed")
