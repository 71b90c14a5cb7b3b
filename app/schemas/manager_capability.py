"""
Result shapes produced by the manager capability engine.
Every model is JSON-serializable via `model_dump(mode="json")`.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DriftPattern(str, Enum):
    ALIGNED = "aligned"
    VARIABLE = "variable"
    CONSISTENTLY_LOW = "consistently_low"    # Calibration raised the manager's scores
    CONSISTENTLY_HIGH = "consistently_high"  # Calibration lowered the manager's scores


class CapabilityTrend(str, Enum):
    STABLE = "stable"
    DECLINING = "declining"


class TimelinessMetrics(BaseModel):
    total_reviews_assigned: int = 0
    reviews_completed: int = 0
    reviews_on_time: int = 0
    reviews_late: int = 0
    avg_days_before_deadline: float = 0.0
    timeliness_score: float = 100.0


class CommentIssue(BaseModel):
    type: str
    description: str


class CommentAnalysis(BaseModel):
    word_count: int
    sentence_count: int
    depth_score: float
    specificity_score: float
    actionability_score: float
    overall_score: float
    evidence_present: bool
    examples_present: bool
    forward_looking: bool
    balanced_feedback: bool
    issues: List[CommentIssue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    confidence: int


class SubmissionCommentAnalysis(CommentAnalysis):
    submission_id: int


class CommentQualityAverages(BaseModel):
    avg_depth_score: float
    avg_specificity_score: float
    avg_actionability_score: float
    avg_overall_score: float
    avg_word_count: float
    total_comments: int
    comments_with_evidence: int
    comments_with_examples: int


class CommentBatchAnalysis(BaseModel):
    batch_analysis: List[SubmissionCommentAnalysis] = Field(default_factory=list)
    average_scores: Optional[CommentQualityAverages] = None


class ScoreVarianceResult(BaseModel):
    avg_score: float = 0.0
    std_deviation: float = 0.0
    distribution: Dict[int, int] = Field(default_factory=dict)
    differentiation_score: float = 50.0
    total_scores: int = 0


class CalibrationAlignmentResult(BaseModel):
    employees_reviewed: int
    scores_unchanged: int
    scores_increased: int
    scores_decreased: int
    avg_adjustment: float
    max_adjustment: float
    adjustment_rate: float
    alignment_score: float
    drift_pattern: DriftPattern
    training_recommended: bool


class CalibrationSnapshot(BaseModel):
    """Latest stored alignment for a manager, or the neutral default."""
    score: float
    has_data: bool = False
    session_id: Optional[int] = None
    adjustment_rate: Optional[float] = None
    drift_pattern: Optional[DriftPattern] = None
    employees_adjusted: int = 0


class ScorecardBreakdown(BaseModel):
    timeliness: TimelinessMetrics
    comment_quality: Optional[CommentQualityAverages] = None
    score_variance: ScoreVarianceResult
    calibration_alignment: CalibrationSnapshot


class CapabilityScorecard(BaseModel):
    manager_id: int
    company_id: int
    cycle_id: Optional[int] = None
    timeliness_score: float
    comment_quality_score: float
    differentiation_score: float
    calibration_alignment_score: float
    overall_capability_score: float
    capability_trend: CapabilityTrend
    breakdown: ScorecardBreakdown
    calculated_at: datetime


class HRFlag(BaseModel):
    flag_type: str
    flag_severity: str
    flag_title: str
    flag_description: str
    evidence_data: Dict[str, Any] = Field(default_factory=dict)
    affected_employees_count: int = 0
    human_review_required: bool = True
    is_new: bool = False


class HRFlagReport(BaseModel):
    flags: List[HRFlag] = Field(default_factory=list)
    new_flags_created: int = 0
    scorecard: CapabilityScorecard


class CoachingRecommendation(BaseModel):
    area: str
    priority: str
    title: str
    description: str
    action_items: List[str]


class CoachingReport(BaseModel):
    manager_id: int
    recommendations: List[CoachingRecommendation] = Field(default_factory=list)
    overall_score: float
    generated_at: datetime


class BatchManagerResult(BaseModel):
    manager_id: int
    success: bool
    flags: Optional[List[HRFlag]] = None
    new_flags_created: Optional[int] = None
    scorecard: Optional[CapabilityScorecard] = None
    error: Optional[str] = None


class BatchAnalysisReport(BaseModel):
    total_managers: int
    analyzed: int
    failed: int
    results: List[BatchManagerResult] = Field(default_factory=list)


# --- Read views over persisted records ---

class ScorecardRecord(BaseModel):
    id: int
    manager_id: int
    company_id: int
    cycle_id: Optional[int] = None
    timeliness_score: Optional[float] = None
    comment_quality_score: Optional[float] = None
    differentiation_score: Optional[float] = None
    calibration_alignment_score: Optional[float] = None
    overall_capability_score: Optional[float] = None
    capability_trend: Optional[str] = None
    calculated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HRFlagRecord(BaseModel):
    id: int
    manager_id: int
    company_id: int
    cycle_id: Optional[int] = None
    flag_type: str
    flag_severity: str
    flag_title: str
    flag_description: Optional[str] = None
    evidence_data: Optional[Dict[str, Any]] = None
    affected_employees_count: int = 0
    human_review_required: bool
    is_resolved: bool
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class FlagResolveRequest(BaseModel):
    resolved_by: int
    resolution_notes: Optional[str] = None


class ExplainabilityRecordOut(BaseModel):
    id: int
    company_id: int
    manager_id: Optional[int] = None
    insight_type: str
    model_version: str
    confidence_score: float
    source_data_summary: Optional[Dict[str, Any]] = None
    limitations: Optional[List[str]] = None
    human_review_required: bool
    request_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
