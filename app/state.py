"""
Process-wide service wiring and request dependencies
"""
import asyncio
from typing import Callable, Dict, Optional

from fastapi import Depends, Header, HTTPException

from app.config import settings
from app.database import db_manager
from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import VisibilityScope, resolve_scope
from app.services.classification_cache import ClassificationCache
from app.services.dismissed_store import (
    DISMISSED_KEY,
    DatabaseDismissedStore,
    DismissedStore,
    JsonFileDismissedStore,
)
from app.services.export_service import ExportService
from app.services.notification_ledger import NotificationLedger
from app.services.scheduler import SchedulerService
from app.services.urgency_classifier import UrgencyClassifier, build_classifier
from app.sources import ComplaintSource, NotificationSource


def build_dismissed_store(key: str = DISMISSED_KEY) -> DismissedStore:
    if settings.DISMISSED_STORE == "database":
        return DatabaseDismissedStore(db_manager, key=key)
    return JsonFileDismissedStore(settings.DISMISSED_STORE_PATH, key=key)


def viewer_store_key(viewer: str) -> str:
    """Persistence key for one viewer's dismissed ids"""
    return f"{DISMISSED_KEY}:{viewer}"


class AppState:
    """Owns the long-lived collaborators. Each component keeps its own state;
    routes only call their public operations. Notification ledgers are kept
    per viewer, keyed by normalized email."""

    def __init__(
        self,
        complaint_source=None,
        notification_source=None,
        classifier: Optional[UrgencyClassifier] = None,
        store_factory: Optional[Callable[[str], DismissedStore]] = None,
    ):
        self.complaint_source = complaint_source or ComplaintSource()
        self.notification_source = notification_source or NotificationSource()
        self.classifier = classifier
        self.cache = ClassificationCache() if settings.CLASSIFICATION_CACHE_ENABLED else None
        self.store_factory = store_factory or build_dismissed_store
        self.ledgers: Dict[str, NotificationLedger] = {}
        self._ledger_lock = asyncio.Lock()
        self.scheduler = SchedulerService(self.refresh_notifications, settings.REFRESH_INTERVAL_SECONDS)
        self.export_service = ExportService()

    async def startup(self):
        if self.classifier is None:
            self.classifier = build_classifier()
        self.scheduler.start()
        logger.info("Application state ready")

    async def ledger_for(self, viewer: str) -> NotificationLedger:
        """
        Get the viewer's ledger, loading it on first use

        Args:
            viewer: Normalized viewer email
        """
        async with self._ledger_lock:
            ledger = self.ledgers.get(viewer)
            if ledger is None:
                ledger = NotificationLedger(
                    self.store_factory(viewer_store_key(viewer)),
                    source=self.notification_source,
                )
                await ledger.load()
                await ledger.refresh()
                self.ledgers[viewer] = ledger
                logger.info(f"Notification ledger created, {len(self.ledgers)} viewers active")
        return ledger

    async def refresh_notifications(self) -> Optional[DataUnavailableError]:
        """Re-read the feed for every active viewer; returns the first fetch error"""
        errors = await asyncio.gather(*(ledger.refresh() for ledger in list(self.ledgers.values())))
        return next((error for error in errors if error is not None), None)

    async def shutdown(self):
        await self.scheduler.stop()
        for ledger in self.ledgers.values():
            await ledger.close()
        await db_manager.close()


_state: Optional[AppState] = None


def set_state(state: Optional[AppState]):
    global _state
    _state = state


def get_state() -> AppState:
    """Dependency returning the process-wide state"""
    if _state is None:
        raise HTTPException(status_code=503, detail="Service is starting")
    return _state


def get_scope(
    x_user_role: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
) -> VisibilityScope:
    """Dependency building the viewer scope from the session headers"""
    scope = resolve_scope(x_user_role, x_user_email)
    if scope is None:
        raise HTTPException(status_code=403, detail="Role may not view complaint triage")
    return scope


async def get_ledger(
    x_user_email: Optional[str] = Header(default=None),
    state: AppState = Depends(get_state),
) -> NotificationLedger:
    """Dependency returning the requesting viewer's notification ledger"""
    viewer = (x_user_email or "").strip().lower()
    if not viewer:
        raise HTTPException(status_code=400, detail="No viewer email found. Please re-login.")
    return await state.ledger_for(viewer)
