"""
API routes for complaint analytics and exports
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from app.models import FilterSpec, TimelineGranularity, TimeRange, VisibilityScope
from app.services.analytics_aggregator import AnalyticsAggregator
from app.services.export_service import export_filename
from app.state import AppState, get_scope, get_state

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_filters(
    time_range: TimeRange = Query(TimeRange.LAST_30_DAYS),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    urgency: Optional[str] = Query(None),
) -> FilterSpec:
    return FilterSpec(time_range=time_range, category=category, status=status, urgency=urgency)


async def _load(state: AppState, scope: VisibilityScope) -> AnalyticsAggregator:
    aggregator = AnalyticsAggregator(state.complaint_source, scope)
    await aggregator.refresh()
    return aggregator


@router.get("")
async def get_analytics(
    filters: FilterSpec = Depends(get_filters),
    granularity: TimelineGranularity = Query(TimelineGranularity.MONTHLY),
    scope: VisibilityScope = Depends(get_scope),
    state: AppState = Depends(get_state),
):
    """Category, status, urgency and timeline counts for the filtered complaints"""
    aggregator = await _load(state, scope)
    buckets = aggregator.apply(filters, granularity)
    return {
        "filters": filters.model_dump(mode="json"),
        "granularity": granularity.value,
        "analytics": buckets.model_dump(),
        "error": str(aggregator.last_error) if aggregator.last_error else None,
    }


@router.get("/export.csv")
async def export_csv(
    filters: FilterSpec = Depends(get_filters),
    scope: VisibilityScope = Depends(get_scope),
    state: AppState = Depends(get_state),
):
    """CSV of the filtered complaint set"""
    aggregator = await _load(state, scope)
    aggregator.apply(filters)
    content = state.export_service.export_to_csv(aggregator.filtered)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.get("/report.pdf")
async def export_pdf(
    filters: FilterSpec = Depends(get_filters),
    granularity: TimelineGranularity = Query(TimelineGranularity.MONTHLY),
    scope: VisibilityScope = Depends(get_scope),
    state: AppState = Depends(get_state),
):
    """PDF summary of the analytics buckets"""
    aggregator = await _load(state, scope)
    buckets = aggregator.apply(filters, granularity)
    content = state.export_service.export_to_pdf(buckets, filters, granularity)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(extension="pdf")}"'},
    )
