# Domain and persistence models package
from .complaint import Complaint
from .notification import Notification, NotificationTab, NotificationType
from .scope import ScopedVisibility, UnscopedVisibility, VisibilityScope, resolve_scope
from .triage import ClassificationResult, TriageQueueEntry, Urgency
from .analytics import AnalyticsBuckets, FilterSpec, StatusSummary, TimelineGranularity, TimeRange
from .ledger import LedgerEntry

__all__ = [
    "Complaint",
    "Notification",
    "NotificationTab",
    "NotificationType",
    "ScopedVisibility",
    "UnscopedVisibility",
    "VisibilityScope",
    "resolve_scope",
    "ClassificationResult",
    "TriageQueueEntry",
    "Urgency",
    "AnalyticsBuckets",
    "FilterSpec",
    "StatusSummary",
    "TimelineGranularity",
    "TimeRange",
    "LedgerEntry",
]
