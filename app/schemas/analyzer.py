"""
Request variants for the capability analyzer.

`AnalyzerRequest` is a closed union discriminated on `action`; each variant
declares exactly the identifiers its action needs.
"""
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, Field

from app.models.appraisal import CommentType


class AnalyzerAction(str, Enum):
    CALCULATE_TIMELINESS_METRICS = "calculate_timeliness_metrics"
    ANALYZE_COMMENT_QUALITY = "analyze_comment_quality"
    CALCULATE_SCORE_VARIANCE = "calculate_score_variance"
    CALCULATE_CALIBRATION_ALIGNMENT = "calculate_calibration_alignment"
    GENERATE_CAPABILITY_SCORECARD = "generate_capability_scorecard"
    GENERATE_HR_FLAGS = "generate_hr_flags"
    GENERATE_COACHING_RECOMMENDATIONS = "generate_coaching_recommendations"
    BATCH_ANALYZE_MANAGERS = "batch_analyze_managers"


class _ManagerScopedRequest(BaseModel):
    company_id: int
    manager_id: int
    cycle_id: Optional[int] = None


class TimelinessRequest(_ManagerScopedRequest):
    action: Literal["calculate_timeliness_metrics"]


class CommentQualityRequest(_ManagerScopedRequest):
    action: Literal["analyze_comment_quality"]
    participant_id: Optional[int] = None
    comment: Optional[str] = None  # Omitted: analyze every comment the manager wrote
    comment_type: CommentType = CommentType.GENERAL


class ScoreVarianceRequest(_ManagerScopedRequest):
    action: Literal["calculate_score_variance"]


class CalibrationAlignmentRequest(BaseModel):
    action: Literal["calculate_calibration_alignment"]
    company_id: int
    manager_id: int
    session_id: int


class ScorecardRequest(_ManagerScopedRequest):
    action: Literal["generate_capability_scorecard"]


class HRFlagsRequest(_ManagerScopedRequest):
    action: Literal["generate_hr_flags"]


class CoachingRequest(_ManagerScopedRequest):
    action: Literal["generate_coaching_recommendations"]


class BatchAnalyzeRequest(BaseModel):
    action: Literal["batch_analyze_managers"]
    company_id: int
    cycle_id: Optional[int] = None


AnalyzerRequest = Annotated[
    Union[
        TimelinessRequest,
        CommentQualityRequest,
        ScoreVarianceRequest,
        CalibrationAlignmentRequest,
        ScorecardRequest,
        HRFlagsRequest,
        CoachingRequest,
        BatchAnalyzeRequest,
    ],
    Field(discriminator="action"),
]
