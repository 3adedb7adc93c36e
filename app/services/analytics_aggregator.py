"""
Complaint analytics: multi-field filtering and category/status/urgency/timeline buckets
"""
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import (
    AnalyticsBuckets,
    Complaint,
    FilterSpec,
    ScopedVisibility,
    StatusSummary,
    TimelineGranularity,
    VisibilityScope,
)

DEFAULT_CATEGORY = "Unknown"
DEFAULT_STATUS = "Pending"
DEFAULT_URGENCY = "Medium"

# Fixed English abbreviations so labels do not depend on the process locale
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _short(day: date) -> str:
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"


def timeline_bucket(moment: datetime, granularity: TimelineGranularity) -> Tuple[date, str]:
    """
    Bucket a timestamp

    Args:
        moment: Complaint timestamp (aware)
        granularity: Bucket size

    Returns:
        Tuple of (bucket start date used for ordering, display label)
    """
    day = moment.astimezone(timezone.utc).date()

    if granularity == TimelineGranularity.DAILY:
        return day, f"{_short(day)}, {day.year}"

    if granularity == TimelineGranularity.WEEKLY:
        # Weeks run Sunday..Saturday; date.weekday() has Monday == 0
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        end = start + timedelta(days=6)
        return start, f"{_short(start)} - {_short(end)}, {end.year}"

    if granularity == TimelineGranularity.YEARLY:
        return date(day.year, 1, 1), str(day.year)

    return date(day.year, day.month, 1), f"{MONTH_ABBR[day.month - 1]} {day.year}"


def filter_complaints(
    complaints: Iterable[Complaint],
    filters: FilterSpec,
    now: Optional[datetime] = None,
) -> List[Complaint]:
    """
    Apply the time range and equality filters (logical AND)

    Complaints without a submission date count as submitted at the epoch,
    so any range narrower than "all" drops them.
    """
    days = filters.time_range.days
    cutoff = (now or _utcnow()) - timedelta(days=days) if days is not None else None

    filtered = []
    for complaint in complaints:
        if cutoff is not None and complaint.effective_date < cutoff:
            continue
        if filters.category is not None and complaint.category != filters.category:
            continue
        if filters.status is not None and complaint.status != filters.status:
            continue
        if filters.urgency is not None and complaint.urgency != filters.urgency:
            continue
        filtered.append(complaint)
    return filtered


def count_by(complaints: Iterable[Complaint], attribute: str, default: str) -> Dict[str, int]:
    """Count complaints by raw field value, in first-seen order"""
    return dict(Counter(getattr(c, attribute) or default for c in complaints))


def timeline(complaints: Iterable[Complaint], granularity: TimelineGranularity) -> Dict[str, int]:
    """Count complaints per time bucket, ordered chronologically"""
    counts: Dict[str, int] = {}
    starts: Dict[str, date] = {}
    for complaint in complaints:
        start, label = timeline_bucket(complaint.effective_date, granularity)
        counts[label] = counts.get(label, 0) + 1
        starts[label] = start
    return {label: counts[label] for label in sorted(counts, key=lambda k: starts[k])}


def aggregate(
    complaints: Sequence[Complaint],
    filters: FilterSpec,
    granularity: TimelineGranularity,
    now: Optional[datetime] = None,
) -> AnalyticsBuckets:
    """
    Filter complaints and build all four bucket views

    Args:
        complaints: Complaints to analyse
        filters: Time range and equality filters
        granularity: Timeline bucket size
        now: Reference time for the time range (defaults to current UTC time)

    Returns:
        Bucket set; every mapping sums to the filtered complaint count
    """
    filtered = filter_complaints(complaints, filters, now)
    return _buckets(filtered, granularity)


def _buckets(filtered: Sequence[Complaint], granularity: TimelineGranularity) -> AnalyticsBuckets:
    return AnalyticsBuckets(
        total=len(filtered),
        by_category=count_by(filtered, "category", DEFAULT_CATEGORY),
        by_status=count_by(filtered, "status", DEFAULT_STATUS),
        by_urgency=count_by(filtered, "urgency", DEFAULT_URGENCY),
        by_timeline=timeline(filtered, granularity),
    )


def scope_complaints(complaints: Iterable[Complaint], scope: VisibilityScope) -> List[Complaint]:
    """Staff analytics cover their role's complaints only; admins see all"""
    if isinstance(scope, ScopedVisibility):
        return [c for c in complaints if (c.assigned_role or "").lower() == scope.role]
    return list(complaints)


def status_summary(complaints: Iterable[Complaint], role: Optional[str], email: Optional[str]) -> StatusSummary:
    """
    Count a staff member's assigned complaints by workflow status

    Args:
        complaints: All complaints
        role: Staff role; when empty only the assignee is matched
        email: Staff email; without one nothing is counted
    """
    summary = StatusSummary()
    normalized_email = (email or "").strip().lower()
    normalized_role = (role or "").strip().lower()
    if not normalized_email:
        return summary

    for complaint in complaints:
        assigned_to = (complaint.assigned_to or "").strip().lower()
        assigned_role = (complaint.assigned_role or "").strip().lower()
        if assigned_to != normalized_email:
            continue
        if normalized_role and assigned_role != normalized_role:
            continue

        summary.total += 1
        status = (complaint.status or "").strip().lower()
        if status == "pending":
            summary.pending += 1
        elif status in ("in-progress", "in progress"):
            summary.in_progress += 1
        elif status in ("resolved", "closed"):
            summary.resolved += 1

    return summary


class AnalyticsAggregator:
    """Keeps one viewer's complaint set and its current analytics.

    Filter changes recompute every view from the loaded set; a granularity
    change alone only recomputes the timeline. Neither refetches.
    """

    def __init__(self, source=None, scope: Optional[VisibilityScope] = None):
        """
        Args:
            source: Object exposing async ``list_complaints()``
            scope: Viewer scope applied when complaints are loaded
        """
        self.source = source
        self.scope = scope
        self.complaints: List[Complaint] = []
        self.filters = FilterSpec()
        self.granularity = TimelineGranularity.MONTHLY
        self.filtered: List[Complaint] = []
        self.buckets = AnalyticsBuckets()
        self.last_error: Optional[DataUnavailableError] = None

    async def refresh(self) -> Optional[DataUnavailableError]:
        """
        Reload complaints from the source and recompute

        Returns:
            The fetch error, if any; the complaint set is then empty
        """
        try:
            complaints = await self.source.list_complaints()
            self.last_error = None
        except DataUnavailableError as e:
            logger.error(f"Complaint data unavailable for analytics: {str(e)}")
            complaints, self.last_error = [], e
        except Exception as e:
            logger.error(f"Error fetching complaints for analytics: {str(e)}")
            complaints, self.last_error = [], DataUnavailableError("complaints", str(e))

        self.load(complaints)
        return self.last_error

    def load(self, complaints: Iterable[Complaint]) -> AnalyticsBuckets:
        scoped = scope_complaints(complaints, self.scope) if self.scope is not None else list(complaints)
        self.complaints = scoped
        return self.apply(self.filters, self.granularity)

    def apply(
        self,
        filters: FilterSpec,
        granularity: Optional[TimelineGranularity] = None,
        now: Optional[datetime] = None,
    ) -> AnalyticsBuckets:
        self.filters = filters
        if granularity is not None:
            self.granularity = granularity
        self.filtered = filter_complaints(self.complaints, filters, now)
        self.buckets = _buckets(self.filtered, self.granularity)
        logger.debug(f"Analytics recomputed - {len(self.filtered)}/{len(self.complaints)} complaints after filters")
        return self.buckets

    def regranulate(self, granularity: TimelineGranularity) -> AnalyticsBuckets:
        """Switch timeline granularity, leaving the other views untouched"""
        self.granularity = granularity
        self.buckets = self.buckets.model_copy(
            update={"by_timeline": timeline(self.filtered, granularity)}
        )
        return self.buckets
