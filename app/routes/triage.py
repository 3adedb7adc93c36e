"""
API routes for the urgent-complaint queue and staff workload counters
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import VisibilityScope
from app.services.analytics_aggregator import status_summary
from app.services.triage_engine import TriageEngine
from app.state import AppState, get_scope, get_state

router = APIRouter(prefix="/triage", tags=["triage"])


@router.get("/urgent")
async def get_urgent_queue(
    scope: VisibilityScope = Depends(get_scope),
    state: AppState = Depends(get_state),
):
    """Classify all complaints and return the viewer's Critical/High queue"""
    engine = TriageEngine(state.complaint_source, state.classifier, cache=state.cache)
    try:
        run = await engine.refresh(scope)
    except Exception as e:
        logger.error(f"Error computing urgent queue: {str(e)}")
        raise HTTPException(status_code=500, detail="Error computing urgent queue")
    finally:
        engine.close()

    logger.info(
        f"Urgent queue served: {len(run.entries)} entries",
        extra={'viewer_role': getattr(scope, "role", "admin")}
    )
    return {
        "queue": [entry.model_dump(mode="json") for entry in run.entries],
        "count": len(run.entries),
        "stats": run.stats,
        "error": str(run.error) if run.error else None,
    }


@router.get("/stats")
async def get_assignment_stats(
    x_user_role: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    state: AppState = Depends(get_state),
):
    """Workload counters for the requesting staff member"""
    if not (x_user_email or "").strip():
        raise HTTPException(status_code=400, detail="No staff email found. Please re-login.")

    try:
        complaints = await state.complaint_source.list_complaints()
    except DataUnavailableError as e:
        logger.error(f"Complaint data unavailable for stats: {str(e)}")
        return {"stats": status_summary([], x_user_role, x_user_email).model_dump(), "error": str(e)}

    summary = status_summary(complaints, x_user_role, x_user_email)
    return {"stats": summary.model_dump(), "error": None}
