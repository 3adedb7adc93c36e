from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimeRange(str, Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_YEAR = "1y"
    ALL = "all"

    @property
    def days(self) -> Optional[int]:
        return {"7d": 7, "30d": 30, "90d": 90, "1y": 365}.get(self.value)


class TimelineGranularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class FilterSpec(BaseModel):
    """Analytics filters. A None (or "all") dimension is not filtered."""

    model_config = ConfigDict(frozen=True)

    time_range: TimeRange = TimeRange.LAST_30_DAYS
    category: Optional[str] = None
    status: Optional[str] = None
    urgency: Optional[str] = None

    @field_validator("category", "status", "urgency", mode="before")
    @classmethod
    def _all_means_unfiltered(cls, value):
        if value in ("", "all"):
            return None
        return value


class AnalyticsBuckets(BaseModel):
    """Four independent count views over one filtered complaint set"""

    total: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_urgency: Dict[str, int] = Field(default_factory=dict)
    by_timeline: Dict[str, int] = Field(default_factory=dict)


class StatusSummary(BaseModel):
    """Workload counters for one staff member's assigned complaints"""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
