"""
Viewer visibility scopes for the urgent-complaint queue
"""
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.complaint import Complaint


STAFF_ROLES = ("staff", "kasama")
ADMIN_ROLE = "admin"


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class UnscopedVisibility(BaseModel):
    """Admin view: every complaint nobody has claimed yet"""

    model_config = ConfigDict(frozen=True)

    def matches(self, complaint: Complaint) -> bool:
        return not (complaint.assigned_role or complaint.assigned_to)


class ScopedVisibility(BaseModel):
    """Staff view: complaints routed to the viewer's role, and to the viewer
    personally when the complaint names an assignee. Comparisons are
    case-insensitive."""

    model_config = ConfigDict(frozen=True)

    role: str
    identity: str = ""

    @field_validator("role", "identity", mode="before")
    @classmethod
    def _normalize_fields(cls, value: Optional[str]) -> str:
        return _normalize(value)

    def matches(self, complaint: Complaint) -> bool:
        if _normalize(complaint.assigned_role) != self.role:
            return False
        assignee = _normalize(complaint.assigned_to)
        if self.identity and assignee and assignee != self.identity:
            return False
        return True


VisibilityScope = Union[UnscopedVisibility, ScopedVisibility]


def resolve_scope(role: Optional[str], identity: Optional[str] = None) -> Optional[VisibilityScope]:
    """
    Build the viewer scope once from session fields

    Args:
        role: Session role (admin, staff or kasama; case-insensitive)
        identity: Viewer email or other assignee identifier

    Returns:
        The scope, or None when the role may not see the triage queue
    """
    normalized_role = _normalize(role)
    if normalized_role == ADMIN_ROLE:
        return UnscopedVisibility()
    if normalized_role in STAFF_ROLES:
        return ScopedVisibility(role=normalized_role, identity=identity)
    return None
