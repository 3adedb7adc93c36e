"""
Notification read/unread/dismissed ledger with a single time-bounded undo
"""
import asyncio
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Set

from app.config import settings
from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import Notification, NotificationTab
from app.models.complaint import EPOCH
from app.services.dismissed_store import DismissedStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationLedger:
    """
    Tracks which notifications a viewer has seen and dismissed.

    Dismissed ids are persisted through the injected store on every change.
    The seen watermark and the undo buffer live for the session only. Only
    the most recent dismiss action can be undone, and only until its timer
    fires.
    """

    def __init__(
        self,
        store: DismissedStore,
        source=None,
        undo_window: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize notification ledger

        Args:
            store: Dismissed-id persistence
            source: Object exposing async ``list_notifications()``
            undo_window: Seconds a dismissal stays undoable (uses settings if not provided)
            clock: Returns the current aware datetime
        """
        self.store = store
        self.source = source
        self.undo_window = undo_window if undo_window is not None else settings.UNDO_WINDOW_SECONDS
        self._clock = clock or _utcnow

        self.notifications: List[Notification] = []
        self.last_seen_at: datetime = EPOCH
        self.pending_undo: List[str] = []
        self.last_error: Optional[DataUnavailableError] = None
        self.store_error: Optional[DataUnavailableError] = None
        self._dismissed: List[str] = []
        self._dismissed_set: Set[str] = set()
        self._undo_task: Optional[asyncio.Task] = None

    @property
    def dismissed_ids(self) -> List[str]:
        return list(self._dismissed)

    @property
    def undo_pending(self) -> bool:
        return bool(self.pending_undo)

    async def load(self) -> bool:
        """
        Read the persisted dismissed ids

        Ids dismissed in memory since a failed load are kept alongside the
        persisted ones.

        Returns:
            False when the store could not be read; saves are then held back
            until a later load succeeds
        """
        try:
            persisted = await self.store.load()
        except DataUnavailableError as e:
            logger.error(f"Dismissed ids unavailable, holding back saves: {str(e)}")
            self.store_error = e
            return False

        self._set_dismissed(list(persisted) + self._dismissed)
        self.store_error = None
        logger.info(f"Notification ledger loaded with {len(self._dismissed)} dismissed ids")
        return True

    async def refresh(self) -> Optional[DataUnavailableError]:
        """
        Re-read the whole notification feed

        Returns:
            The fetch error, if any; the known notification list is then empty
        """
        try:
            notifications = await self.source.list_notifications()
            self.last_error = None
        except DataUnavailableError as e:
            logger.error(f"Notification data unavailable: {str(e)}")
            notifications, self.last_error = [], e
        except Exception as e:
            logger.error(f"Error fetching notifications: {str(e)}")
            notifications, self.last_error = [], DataUnavailableError("notifications", str(e))

        self.set_notifications(notifications)
        return self.last_error

    def set_notifications(self, notifications: Iterable[Notification]):
        # Newest first
        self.notifications = sorted(notifications, key=lambda n: n.date, reverse=True)

    # Seen watermark

    def mark_seen_up_to(self, moment: datetime) -> datetime:
        """Advance the watermark; earlier moments are ignored"""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        if moment > self.last_seen_at:
            self.last_seen_at = moment
        return self.last_seen_at

    def mark_all_seen(self) -> datetime:
        return self.mark_seen_up_to(self._clock())

    # Dismissal

    async def dismiss(self, notification_id: str):
        if notification_id not in self._dismissed_set:
            self._dismissed.append(notification_id)
            self._dismissed_set.add(notification_id)
        self._start_undo_window([notification_id])
        await self._persist()
        logger.debug(f"Dismissed notification {notification_id}")

    async def dismiss_all(self, notification_ids: Optional[Iterable[str]] = None) -> List[str]:
        """
        Dismiss many notifications at once

        Args:
            notification_ids: Ids to dismiss (defaults to every known notification)

        Returns:
            The newly dismissed ids, which become the undo buffer
        """
        if notification_ids is None:
            notification_ids = [n.id for n in self.notifications]

        added = [i for i in dict.fromkeys(notification_ids) if i not in self._dismissed_set]
        self._dismissed.extend(added)
        self._dismissed_set.update(added)
        self._start_undo_window(added)
        await self._persist()
        logger.info(f"Dismissed {len(added)} notifications")
        return added

    async def undo(self) -> List[str]:
        """
        Restore the ids of the most recent dismiss action

        Returns:
            The restored ids; empty when there is nothing to undo
        """
        if not self.pending_undo:
            return []

        restored = self.pending_undo
        self._cancel_undo_timer()
        self.pending_undo = []
        restored_set = set(restored)
        self._set_dismissed([i for i in self._dismissed if i not in restored_set])
        await self._persist()
        logger.info(f"Undo restored {len(restored)} notifications")
        return restored

    # Views

    def visible(self, tab: NotificationTab = NotificationTab.ALL) -> List[Notification]:
        tab = NotificationTab(tab)
        return [
            n for n in self.notifications
            if n.id not in self._dismissed_set
            and (tab == NotificationTab.ALL or n.date > self.last_seen_at)
        ]

    @property
    def unread_count(self) -> int:
        return len(self.visible(NotificationTab.UNREAD))

    async def close(self):
        """Cancel the pending undo timer"""
        task = self._undo_task
        self._cancel_undo_timer()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # Internals

    async def _persist(self):
        # Never overwrite persisted ids that were not read successfully
        if self.store_error is not None and not await self.load():
            logger.warning("Dismissed ids kept in memory only: persisted state is unreadable")
            return
        await self.store.save(self._dismissed)

    def _set_dismissed(self, ids: Iterable[str]):
        self._dismissed = list(dict.fromkeys(ids))
        self._dismissed_set = set(self._dismissed)

    def _start_undo_window(self, ids: List[str]):
        # Cancel and replace in one step so a stale timer can never clear the new buffer
        self._cancel_undo_timer()
        self.pending_undo = list(ids)
        if self.pending_undo:
            self._undo_task = asyncio.get_running_loop().create_task(self._expire_undo())

    def _cancel_undo_timer(self):
        if self._undo_task is not None and not self._undo_task.done():
            self._undo_task.cancel()
        self._undo_task = None

    async def _expire_undo(self):
        await asyncio.sleep(self.undo_window)
        if self._undo_task is asyncio.current_task():
            logger.debug(f"Undo window expired for {len(self.pending_undo)} notifications")
            self.pending_undo = []
            self._undo_task = None
