from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> Any:
    """Normalize stored timestamps to aware datetimes (UTC when naive)

    Raises:
        ValueError: If a numeric timestamp is outside the platform's range
    """
    if value is None or value == "":
        return None
    try:
        if isinstance(value, dict):
            # Firestore REST exports timestamps as {"seconds": .., "nanoseconds": ..}
            seconds = value.get("seconds", value.get("_seconds"))
            if seconds is None:
                return None
            nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
            return datetime.fromtimestamp(int(seconds) + int(nanos) / 1e9, tz=timezone.utc)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            # Large values are JavaScript millisecond timestamps
            seconds = value / 1000 if abs(value) > 1e11 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError, TypeError) as e:
        raise ValueError(f"Invalid timestamp {value!r}: {str(e)}") from e
    return value


class Complaint(BaseModel):
    """A complaint document as read from the store. Never written back."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    concern_description: Optional[str] = Field(default=None, alias="concernDescription")
    incident_description: Optional[str] = Field(default=None, alias="incidentDescription")
    facility_description: Optional[str] = Field(default=None, alias="facilityDescription")
    concern_feedback: Optional[str] = Field(default=None, alias="concernFeedback")
    other_description: Optional[str] = Field(default=None, alias="otherDescription")
    additional_context: Optional[str] = Field(default=None, alias="additionalContext")
    additional_notes: Optional[str] = Field(default=None, alias="additionalNotes")
    impact_experience: Optional[str] = Field(default=None, alias="impactExperience")
    facility_safety: Optional[str] = Field(default=None, alias="facilitySafety")
    category: Optional[str] = None
    status: Optional[str] = None
    urgency: Optional[str] = None
    college: Optional[str] = None
    submission_date: Optional[datetime] = Field(default=None, alias="submissionDate")
    assigned_role: Optional[str] = Field(default=None, alias="assignedRole")
    assigned_to: Optional[str] = Field(default=None, alias="assignedTo")

    @field_validator(
        "concern_description", "incident_description", "facility_description",
        "concern_feedback", "other_description", "additional_context",
        "additional_notes", "impact_experience", "facility_safety",
        "category", "status", "urgency", "college", "assigned_role", "assigned_to",
        mode="before",
    )
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("submission_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> Any:
        return parse_timestamp(value)

    @field_validator("submission_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def effective_date(self) -> datetime:
        """Submission date, or the epoch when the record has none"""
        return self.submission_date or EPOCH

    @property
    def display_date(self) -> str:
        if self.submission_date is None:
            return "N/A"
        return self.submission_date.strftime("%Y-%m-%d")
