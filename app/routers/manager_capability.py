from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.limiter import limiter, ANALYZE_RATE_LIMIT
from app.database import get_db
from app.schemas.analyzer import AnalyzerRequest
from app.schemas.manager_capability import (
    ExplainabilityRecordOut,
    FlagResolveRequest,
    HRFlagRecord,
    ScorecardRecord,
)
from app.services.capability_analyzer import CapabilityAnalyzerService
from app.services.capability_scorecard import CapabilityScorecardService
from app.services.explainability import ExplainabilityService
from app.services.hr_flags import HRFlagService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manager-capability", tags=["manager-capability"])

# Structured failure code -> HTTP status
ERROR_STATUS = {
    "DATA_STORE_ERROR": 503,
    "FEATURE_DISABLED": 403,
    "NOT_FOUND": 404,
}


@router.post("/analyze")
@limiter.limit(ANALYZE_RATE_LIMIT)
def analyze(
    request: Request,
    payload: AnalyzerRequest = Body(...),
    db: Session = Depends(get_db),
):
    """Run one analyzer action; the body's `action` field selects the variant."""
    response = CapabilityAnalyzerService(db, payload.company_id).run(payload)
    if response.success:
        return response.to_dict()
    status_code = ERROR_STATUS.get(response.error.code, 500)
    return JSONResponse(status_code=status_code, content=response.to_dict())


@router.get("/scorecards", response_model=List[ScorecardRecord])
def list_scorecards(
    company_id: int,
    manager_id: Optional[int] = None,
    cycle_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    return CapabilityScorecardService(db, company_id).list_scorecards(manager_id, cycle_id)


@router.get("/flags", response_model=List[HRFlagRecord])
def list_flags(
    company_id: int,
    manager_id: Optional[int] = None,
    cycle_id: Optional[int] = None,
    include_resolved: bool = False,
    db: Session = Depends(get_db),
):
    return HRFlagService(db, company_id).list_flags(manager_id, cycle_id, include_resolved)


@router.post("/flags/{flag_id}/resolve", response_model=HRFlagRecord)
def resolve_flag(
    flag_id: int,
    resolution: FlagResolveRequest,
    company_id: int = Query(...),
    db: Session = Depends(get_db),
):
    return HRFlagService(db, company_id).resolve(flag_id, resolution.resolved_by, resolution.resolution_notes)


@router.get("/explainability", response_model=List[ExplainabilityRecordOut])
def list_explainability_records(
    company_id: int,
    manager_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return ExplainabilityService(db, company_id).list_records(manager_id, limit)
