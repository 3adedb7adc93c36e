from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.complaint import parse_timestamp


class NotificationType(str, Enum):
    STATUS_CHANGE = "status-change"
    FEEDBACK = "feedback"


class Notification(BaseModel):
    """A notification produced by the external feed"""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    date: datetime
    type: NotificationType
    message: str = ""
    category: Optional[str] = None
    complaint_id: Optional[str] = Field(default=None, alias="complaintId")

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class NotificationTab(str, Enum):
    ALL = "all"
    UNREAD = "unread"
