"""
Scheduling service for periodic full refreshes of the notification feed
"""
import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from app.logging_config import logger


class SchedulerService:
    """Re-reads the notification feed on a fixed interval. There is no push
    channel, so periodic full reads are how the ledgers learn about new
    notifications."""

    def __init__(self, refresh: Callable[[], Awaitable[Optional[Exception]]], interval_seconds: float):
        """
        Args:
            refresh: Async callable doing one full refresh; returns the fetch error, if any
            interval_seconds: Seconds between runs, 0 or less disables the loop
        """
        self.refresh = refresh
        self.interval_seconds = interval_seconds
        self.is_running = False
        self.last_run: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    async def run_scheduled_refresh(self):
        """Run one refresh"""
        if self.is_running:
            logger.warning("Refresh already in progress, skipping scheduled run")
            return

        self.is_running = True
        self.last_run = datetime.now(timezone.utc)

        try:
            logger.info("Starting scheduled notification refresh")
            error = await self.refresh()
            self.last_error = str(error) if error else None
            logger.info("Scheduled refresh completed")
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Error in scheduled refresh: {str(e)}")
        finally:
            self.is_running = False

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.run_scheduled_refresh()

    def start(self):
        if self.interval_seconds <= 0:
            logger.info("Scheduled refresh disabled")
            return
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._loop())
            logger.info(f"Scheduled refresh every {self.interval_seconds} seconds")

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def get_status(self) -> dict:
        """Get current scheduler status"""
        return {
            "is_running": self.is_running,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_error": self.last_error,
        }
