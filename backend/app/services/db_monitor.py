import asyncio
import logging
from typing import Callable

from app.core.config import settings
from app.db.session import check_database_connection

logger = logging.getLogger(__name__)

async def wait_for_database(on_connected: Callable[[], None], interval: float | None = None) -> None:
    """Probe the store until it answers, then run ``on_connected`` once.

    Started in the background when the first probe at startup fails, so the
    API keeps serving (``/health`` reports ``disconnected``) meanwhile.
    """
    interval = settings.db_retry_interval_seconds if interval is None else interval
    attempt = 0
    while True:
        attempt += 1
        connected = await asyncio.to_thread(check_database_connection)
        if connected:
            logger.info("Database connected after %s attempt(s)", attempt)
            try:
                await asyncio.to_thread(on_connected)
            except Exception:
                logger.exception("Database preparation failed after reconnect")
            return
        logger.warning("Database unavailable, retrying in %ss", interval)
        await asyncio.sleep(interval)
