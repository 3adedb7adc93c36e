"""
Notification feed reader
"""
from typing import Any, Dict, List

from app.models import Notification
from app.sources.base_source import BaseSource


class NotificationSource(BaseSource[Notification]):
    """Full reader for the notification feed. There is no delta protocol;
    every call returns the whole feed."""

    def __init__(self, **kwargs):
        super().__init__("notifications", **kwargs)

    def _parse_row(self, row: Dict[str, Any]) -> Notification:
        return Notification.model_validate(row)

    async def list_notifications(self) -> List[Notification]:
        return await self.fetch_all()
