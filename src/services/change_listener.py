"""Re-evaluate household stock whenever a change event arrives.

This is the only place that knows about subscriptions; the evaluation it
triggers is the same call the API makes after its own mutations.
"""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from src.database import SessionLocal
from src.services.realtime import HouseholdEventType, RealtimeService
from src.services.stock_service import StockService

logger = logging.getLogger(__name__)


def handle_event(event: dict, session_factory: Callable[[], Session] = SessionLocal) -> bool:
    """Evaluate the household named in an event. Returns True if it ran.

    Events emitted by reconciliation itself are skipped so that evaluation
    does not feed back into another evaluation.
    """
    if event.get("type") == HouseholdEventType.STOCK_RECONCILED:
        return False
    household_id = event.get("household_id")
    if household_id is None:
        logger.warning(f"Ignoring change event without household: {event}")
        return False

    db = session_factory()
    try:
        result = StockService(db).evaluate(int(household_id)).reconciliation
        logger.debug(
            f"Evaluated household {household_id} after {event.get('type')}: "
            f"created={result.created} cleared={result.cleared}"
        )
    finally:
        db.close()
    return True


async def run_change_listener(
    realtime: RealtimeService | None = None,
    session_factory: Callable[[], Session] = SessionLocal,
) -> None:
    """Listen on every household channel until cancelled."""
    realtime = realtime or RealtimeService()
    logger.info("Stock change listener started")
    try:
        async for event in realtime.subscribe():
            try:
                await asyncio.to_thread(handle_event, event, session_factory)
            except Exception:
                # One bad evaluation must not stop the listener
                logger.exception(f"Failed to evaluate after change event {event.get('type')}")
    finally:
        await realtime.cleanup()
        logger.info("Stock change listener stopped")
