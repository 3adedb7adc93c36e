"""
Unit tests for complaint analytics
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from app.exceptions import DataUnavailableError
from app.models import Complaint, FilterSpec, ScopedVisibility, TimelineGranularity, TimeRange, UnscopedVisibility
from app.services.analytics_aggregator import (
    AnalyticsAggregator,
    aggregate,
    scope_complaints,
    status_summary,
    timeline_bucket,
)

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_complaint(complaint_id, days_ago=None, **fields):
    data = {"id": complaint_id}
    if days_ago is not None:
        data["submissionDate"] = (NOW - timedelta(days=days_ago)).isoformat()
    data.update(fields)
    return Complaint.model_validate(data)


class TestAggregate:
    """Test filtering and bucket counts"""

    @pytest.fixture
    def complaints(self):
        return [
            make_complaint("C1", 2, category="facilities", status="pending", urgency="high"),
            make_complaint("C2", 40, category="facilities", status="resolved", urgency="low"),
            make_complaint("C3", 5, category="academic", status="pending", urgency="medium"),
            make_complaint("C4", 10, category="facilities", status="in-progress", urgency="high"),
            make_complaint("C5"),
        ]

    def test_thirty_day_window(self, complaints):
        """Test complaints older than the range are excluded"""
        buckets = aggregate(complaints[:2], FilterSpec(time_range=TimeRange.LAST_30_DAYS), TimelineGranularity.MONTHLY, NOW)

        assert buckets.total == 1
        assert buckets.by_category == {"facilities": 1}
        assert buckets.by_status == {"pending": 1}
        assert buckets.by_urgency == {"high": 1}

    def test_bucket_sums_match_total(self, complaints):
        """Test every view sums to the filtered count"""
        for granularity in TimelineGranularity:
            buckets = aggregate(complaints, FilterSpec(time_range=TimeRange.ALL), granularity, NOW)
            assert buckets.total == 5
            for view in (buckets.by_category, buckets.by_status, buckets.by_urgency, buckets.by_timeline):
                assert sum(view.values()) == buckets.total

    def test_filters_are_combined(self, complaints):
        """Test equality filters combine with the time range"""
        filters = FilterSpec(time_range=TimeRange.LAST_30_DAYS, category="facilities", urgency="high")

        buckets = aggregate(complaints, filters, TimelineGranularity.MONTHLY, NOW)

        assert buckets.total == 2
        assert buckets.by_status == {"pending": 1, "in-progress": 1}

    def test_filter_is_exact_match(self, complaints):
        """Test filter values are not normalized"""
        buckets = aggregate(complaints, FilterSpec(time_range=TimeRange.ALL, category="Facilities"), TimelineGranularity.MONTHLY, NOW)

        assert buckets.total == 0
        assert buckets.by_timeline == {}

    def test_missing_fields_get_default_labels(self, complaints):
        """Test absent fields are counted under default labels"""
        buckets = aggregate([complaints[4]], FilterSpec(time_range=TimeRange.ALL), TimelineGranularity.YEARLY, NOW)

        assert buckets.by_category == {"Unknown": 1}
        assert buckets.by_status == {"Pending": 1}
        assert buckets.by_urgency == {"Medium": 1}
        assert buckets.by_timeline == {"1970": 1}

    def test_missing_date_excluded_from_bounded_range(self, complaints):
        """Test undated complaints only appear under 'all'"""
        buckets = aggregate(complaints, FilterSpec(time_range=TimeRange.LAST_YEAR), TimelineGranularity.MONTHLY, NOW)

        assert buckets.total == 4

    def test_aggregate_is_idempotent(self, complaints):
        """Test identical inputs give identical buckets"""
        filters = FilterSpec(time_range=TimeRange.LAST_90_DAYS)

        first = aggregate(complaints, filters, TimelineGranularity.WEEKLY, NOW)
        second = aggregate(complaints, filters, TimelineGranularity.WEEKLY, NOW)

        assert first == second


class TestTimeline:
    """Test timeline bucketing"""

    def test_daily_label(self):
        """Test daily labels"""
        _, label = timeline_bucket(datetime(2025, 3, 7, 18, tzinfo=timezone.utc), TimelineGranularity.DAILY)
        assert label == "Mar 7, 2025"

    def test_weekly_starts_on_sunday(self):
        """Test weeks run Sunday through Saturday"""
        start, label = timeline_bucket(datetime(2025, 1, 1, tzinfo=timezone.utc), TimelineGranularity.WEEKLY)
        assert start.isoformat() == "2024-12-29"
        assert label == "Dec 29 - Jan 4, 2025"

        start, label = timeline_bucket(datetime(2025, 1, 5, tzinfo=timezone.utc), TimelineGranularity.WEEKLY)
        assert start.isoformat() == "2025-01-05"
        assert label == "Jan 5 - Jan 11, 2025"

    def test_monthly_and_yearly_labels(self):
        """Test monthly and yearly labels"""
        moment = datetime(2025, 3, 7, tzinfo=timezone.utc)

        assert timeline_bucket(moment, TimelineGranularity.MONTHLY)[1] == "Mar 2025"
        assert timeline_bucket(moment, TimelineGranularity.YEARLY)[1] == "2025"

    def test_timeline_is_chronological(self):
        """Test buckets are ordered by time, not by label"""
        complaints = [
            Complaint.model_validate({"id": "A", "submissionDate": "2025-01-10T00:00:00Z"}),
            Complaint.model_validate({"id": "B", "submissionDate": "2024-02-10T00:00:00Z"}),
            Complaint.model_validate({"id": "C", "submissionDate": "2024-12-10T00:00:00Z"}),
            Complaint.model_validate({"id": "D", "submissionDate": "2025-01-20T00:00:00Z"}),
        ]

        buckets = aggregate(complaints, FilterSpec(time_range=TimeRange.ALL), TimelineGranularity.MONTHLY, NOW)

        assert list(buckets.by_timeline.items()) == [("Feb 2024", 1), ("Dec 2024", 1), ("Jan 2025", 2)]


class TestScoping:
    """Test analytics visibility and staff summaries"""

    @pytest.fixture
    def complaints(self):
        return [
            make_complaint("S1", 1, status="pending", assignedRole="staff", assignedTo="me@school.edu"),
            make_complaint("S2", 1, status="In Progress", assignedRole="staff", assignedTo="ME@school.edu"),
            make_complaint("S3", 1, status="closed", assignedRole="staff", assignedTo="me@school.edu"),
            make_complaint("S4", 1, status="pending", assignedRole="kasama", assignedTo="me@school.edu"),
            make_complaint("S5", 1, status="pending", assignedRole="staff", assignedTo="other@school.edu"),
            make_complaint("S6", 1, status="pending"),
        ]

    def test_staff_scope(self, complaints):
        """Test staff analytics only cover their role"""
        scoped = scope_complaints(complaints, ScopedVisibility(role="staff", identity="me@school.edu"))

        assert [c.id for c in scoped] == ["S1", "S2", "S3", "S5"]

    def test_admin_scope(self, complaints):
        """Test admins see every complaint"""
        assert len(scope_complaints(complaints, UnscopedVisibility())) == 6

    def test_status_summary(self, complaints):
        """Test per-assignee status counts"""
        summary = status_summary(complaints, "staff", "me@school.edu")

        assert summary.total == 3
        assert summary.pending == 1
        assert summary.in_progress == 1
        assert summary.resolved == 1

    def test_status_summary_without_email(self, complaints):
        """Test nothing is counted without an email"""
        assert status_summary(complaints, "staff", "").total == 0


class TestAnalyticsAggregator:
    """Test the stateful aggregator"""

    @pytest.fixture
    def source(self):
        source = AsyncMock()
        source.list_complaints.return_value = [
            make_complaint("A1", 1, category="facilities"),
            make_complaint("A2", 20, category="academic"),
            make_complaint("A3", 200, category="academic"),
        ]
        return source

    @pytest.mark.asyncio
    async def test_refresh_and_apply(self, source):
        """Test refetch and filter changes recompute every view"""
        aggregator = AnalyticsAggregator(source, UnscopedVisibility())
        await aggregator.refresh()

        buckets = aggregator.apply(FilterSpec(time_range=TimeRange.ALL), now=NOW)
        assert buckets.total == 3

        buckets = aggregator.apply(FilterSpec(time_range=TimeRange.LAST_7_DAYS), now=NOW)
        assert buckets.total == 1
        assert [c.id for c in aggregator.filtered] == ["A1"]
        source.list_complaints.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_regranulate_keeps_other_views(self, source):
        """Test granularity changes only touch the timeline"""
        aggregator = AnalyticsAggregator(source)
        await aggregator.refresh()
        before = aggregator.apply(FilterSpec(time_range=TimeRange.ALL), TimelineGranularity.MONTHLY, now=NOW)

        after = aggregator.regranulate(TimelineGranularity.YEARLY)

        assert after.by_category == before.by_category
        assert after.by_status == before.by_status
        assert after.total == before.total
        assert after.by_timeline == {"2024": 1, "2025": 2}
        source.list_complaints.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refresh_failure(self, source):
        """Test fetch failures give empty analytics and keep the error"""
        source.list_complaints.side_effect = DataUnavailableError("complaints", "HTTP 500")
        aggregator = AnalyticsAggregator(source)

        error = await aggregator.refresh()

        assert isinstance(error, DataUnavailableError)
        assert aggregator.buckets.total == 0
        assert aggregator.buckets.by_category == {}
