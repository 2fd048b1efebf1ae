import asyncio
import time
from typing import List, Optional

from backend import RoomRegistry
from constants import REAPER_INTERVAL_SECONDS, STALE_ROOM_THRESHOLD_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)


class StaleRoomReaper:
    """Periodically evicts rooms that sat empty for longer than the threshold.

    Rooms are normally deleted on the leave that empties them; this catches
    rooms created over REST and never joined.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        interval_seconds: float = REAPER_INTERVAL_SECONDS,
        threshold_seconds: float = STALE_ROOM_THRESHOLD_SECONDS,
    ):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.threshold_seconds = threshold_seconds
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[float] = None) -> List[str]:
        now = time.time() if now is None else now
        deleted = self.registry.delete_if_stale(now, self.threshold_seconds)
        for code in deleted:
            logger.info(f"[Cleanup] Deleted stale room: {code}")
        return deleted

    async def _run(self):
        logger.info(f"Stale room reaper started (every {self.interval_seconds}s, threshold {self.threshold_seconds}s)")
        while True:
            try:
                await asyncio.sleep(self.interval_seconds)
                self.sweep()
            except asyncio.CancelledError:
                logger.info("Stale room reaper cancelled")
                raise
            except Exception as e:
                logger.error(f"Stale room sweep failed: {e}", exc_info=True)

    def start(self):
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
