"""
Entry point for the manager capability engine.

Each request variant maps to exactly one handler. Successful calls append an
explainability record; failures come back as a structured `ApiResponse.fail`
rather than an exception, so callers decide on transport status codes.
"""
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AppException, DataStoreError
from app.core.schemas import ApiResponse
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.schemas.analyzer import (
    AnalyzerAction,
    BatchAnalyzeRequest,
    CalibrationAlignmentRequest,
    CoachingRequest,
    CommentQualityRequest,
    HRFlagsRequest,
    ScoreVarianceRequest,
    ScorecardRequest,
    TimelinessRequest,
)
from app.services.base import BaseService
from app.services.calibration_alignment import CalibrationAlignmentService
from app.services.capability_scorecard import CapabilityScorecardService
from app.services.coaching import CoachingService
from app.services.comment_quality import CommentQualityService
from app.services.explainability import ExplainabilityService
from app.services.hr_flags import HRFlagService
from app.services.manager_batch import ManagerBatchService
from app.services.review_timeliness import TimelinessService
from app.services.score_variance import ScoreVarianceService


class CapabilityAnalyzerService(BaseService):
    def __init__(self, db: Session, org_id: int, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules
        self.explainability = ExplainabilityService(db, org_id)

    # --- Handlers (one per action) ---

    def _timeliness(self, request: TimelinessRequest) -> BaseModel:
        return TimelinessService(self.db, self.org_id, self.rules).calculate(request.manager_id, request.cycle_id)

    def _comment_quality(self, request: CommentQualityRequest) -> BaseModel:
        service = CommentQualityService(self.db, self.org_id, self.rules)
        if request.comment is None:
            return service.analyze_batch(request.manager_id, request.cycle_id)
        return service.analyze_single(
            request.manager_id,
            request.comment,
            participant_id=request.participant_id,
            comment_type=request.comment_type,
        )

    def _score_variance(self, request: ScoreVarianceRequest) -> BaseModel:
        return ScoreVarianceService(self.db, self.org_id, self.rules).calculate(request.manager_id, request.cycle_id)

    def _calibration_alignment(self, request: CalibrationAlignmentRequest) -> BaseModel:
        return CalibrationAlignmentService(self.db, self.org_id, self.rules).calculate(request.manager_id, request.session_id)

    def _scorecard(self, request: ScorecardRequest) -> BaseModel:
        return CapabilityScorecardService(self.db, self.org_id, self.rules).build(request.manager_id, request.cycle_id)

    def _hr_flags(self, request: HRFlagsRequest) -> BaseModel:
        return HRFlagService(self.db, self.org_id, self.rules).generate(request.manager_id, request.cycle_id)

    def _coaching(self, request: CoachingRequest) -> BaseModel:
        return CoachingService(self.db, self.org_id, self.rules).generate(request.manager_id, request.cycle_id)

    def _batch(self, request: BatchAnalyzeRequest) -> BaseModel:
        if not settings.analyzer.enable_batch_analysis:
            raise AppException("Batch manager analysis is disabled.", status_code=403, error_code="FEATURE_DISABLED")
        return ManagerBatchService(self.db, self.org_id, self.rules).run(request.cycle_id)

    HANDLERS: Dict[AnalyzerAction, Callable[["CapabilityAnalyzerService", Any], BaseModel]] = {
        AnalyzerAction.CALCULATE_TIMELINESS_METRICS: _timeliness,
        AnalyzerAction.ANALYZE_COMMENT_QUALITY: _comment_quality,
        AnalyzerAction.CALCULATE_SCORE_VARIANCE: _score_variance,
        AnalyzerAction.CALCULATE_CALIBRATION_ALIGNMENT: _calibration_alignment,
        AnalyzerAction.GENERATE_CAPABILITY_SCORECARD: _scorecard,
        AnalyzerAction.GENERATE_HR_FLAGS: _hr_flags,
        AnalyzerAction.GENERATE_COACHING_RECOMMENDATIONS: _coaching,
        AnalyzerAction.BATCH_ANALYZE_MANAGERS: _batch,
    }

    # --- Dispatch ---

    def run(self, request) -> ApiResponse:
        action = AnalyzerAction(request.action)
        manager_id: Optional[int] = getattr(request, "manager_id", None)
        self.log_info(f"[Manager Capability Analyzer] Action: {action.value}, Manager: {manager_id}, Company: {self.org_id}")

        handler = self.HANDLERS[action]
        try:
            result = handler(self, request)
        except AppException as e:
            self.db.rollback()
            self.log_warning(f"Analyzer action {action.value} rejected: {e.message}")
            return ApiResponse.fail(e.message, code=e.error_code, details=e.details)
        except SQLAlchemyError as e:
            self.db.rollback()
            self.log_error(f"Record store error during {action.value}: {e}", exc_info=True)
            error = DataStoreError(f"Record store error: {e.__class__.__name__}")
            return ApiResponse.fail(error.message, code=error.error_code)
        except Exception as e:
            self.db.rollback()
            self.log_error(f"Analyzer action {action.value} failed: {e}", exc_info=True)
            return ApiResponse.fail(str(e) or "Unknown error", code="ANALYSIS_FAILED")

        data = result.model_dump(mode="json")
        self.explainability.record(
            action=action.value,
            confidence=data.get("confidence", self.rules.comments.confidence),
            manager_id=manager_id,
            inputs=request.model_dump(mode="json", exclude={"action", "company_id", "manager_id", "comment"}),
            result=data,
        )
        return ApiResponse.ok(data, metadata={
            "action": action.value,
            "model_version": settings.analyzer.model_version,
        })


# Every action variant must be routed
_missing = set(AnalyzerAction) - set(CapabilityAnalyzerService.HANDLERS)
if _missing:
    raise RuntimeError(f"Analyzer actions without a handler: {sorted(a.value for a in _missing)}")
