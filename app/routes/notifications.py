"""
API routes for the per-viewer notification ledger (viewer from X-User-Email)
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.models import NotificationTab
from app.services.notification_ledger import NotificationLedger
from app.state import get_ledger

router = APIRouter(prefix="/notifications", tags=["notifications"])


class DismissAllRequest(BaseModel):
    ids: Optional[List[str]] = None


class MarkSeenRequest(BaseModel):
    up_to: Optional[datetime] = None


def _ledger_view(ledger: NotificationLedger, tab: NotificationTab = NotificationTab.ALL) -> dict:
    return {
        "notifications": [n.model_dump(mode="json") for n in ledger.visible(tab)],
        "unread_count": ledger.unread_count,
        "last_seen_at": ledger.last_seen_at.isoformat(),
        "undo": {"pending": list(ledger.pending_undo)},
        "error": str(ledger.last_error) if ledger.last_error else None,
    }


@router.get("")
async def list_notifications(
    tab: NotificationTab = Query(NotificationTab.ALL),
    ledger: NotificationLedger = Depends(get_ledger),
):
    return _ledger_view(ledger, tab)


@router.post("/refresh")
async def refresh_notifications(ledger: NotificationLedger = Depends(get_ledger)):
    """Re-read the notification feed now"""
    await ledger.refresh()
    return _ledger_view(ledger)


@router.post("/seen")
async def mark_seen(
    request: Optional[MarkSeenRequest] = None,
    ledger: NotificationLedger = Depends(get_ledger),
):
    """Advance the read watermark; without ``up_to`` everything so far is read"""
    if request is None or request.up_to is None:
        ledger.mark_all_seen()
    else:
        ledger.mark_seen_up_to(request.up_to)
    return _ledger_view(ledger)


@router.post("/dismiss-all")
async def dismiss_all(
    request: Optional[DismissAllRequest] = None,
    ledger: NotificationLedger = Depends(get_ledger),
):
    await ledger.dismiss_all(request.ids if request else None)
    return _ledger_view(ledger)


@router.post("/undo")
async def undo_dismiss(ledger: NotificationLedger = Depends(get_ledger)):
    restored = await ledger.undo()
    view = _ledger_view(ledger)
    view["restored"] = restored
    return view


@router.post("/{notification_id}/dismiss")
async def dismiss(notification_id: str, ledger: NotificationLedger = Depends(get_ledger)):
    await ledger.dismiss(notification_id)
    return _ledger_view(ledger)
