from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.complaint import Complaint


class Urgency(str, Enum):
    """Severity labels in descending order"""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: Any) -> Optional["Urgency"]:
        """Case-insensitive lookup; unknown labels return None"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return None

    @property
    def is_urgent(self) -> bool:
        return self in (Urgency.CRITICAL, Urgency.HIGH)


class ClassificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    urgency: Urgency

    @field_validator("urgency", mode="before")
    @classmethod
    def _parse_urgency(cls, value: Any) -> Any:
        return Urgency.parse(value) or value


class TriageQueueEntry(BaseModel):
    """One row of the urgent queue. Rebuilt on every triage run."""

    model_config = ConfigDict(frozen=True)

    complaint_id: str
    snippet: str
    category: Optional[str] = None
    submission_date: Optional[datetime] = None
    urgency: Urgency
    source: Complaint
