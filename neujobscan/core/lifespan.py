import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

from neujobscan.core.config import settings
from neujobscan.core.errors import PersistenceError
from neujobscan.services.history_store import get_default_history_store

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


def purge_expired_history() -> int:
    cutoff = datetime.now(timezone.utc) - timedelta(days=max(1, settings.history_retention_days))
    return get_default_history_store().purge_older_than(cutoff)


@asynccontextmanager
async def lifespan(app):
    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = await asyncio.to_thread(purge_expired_history)
                if deleted:
                    logger.info("history_retention_purge deleted=%s", deleted)
            except PersistenceError as exc:
                logger.warning("history_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=PURGE_INTERVAL_S)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
