"""
Engine outputs: per-comment analyses, capability scorecards and HR flags.
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, JSON, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base


class ManagerCommentAnalysis(Base):
    __tablename__ = "manager_comment_analysis"
    __table_args__ = (
        UniqueConstraint("participant_id", "comment_type", name="uq_comment_analysis_participant_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    manager_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    participant_id = Column(Integer, ForeignKey("appraisal_participants.id"), nullable=False)
    comment_text = Column(Text, nullable=False)
    comment_type = Column(String, default="general")
    comment_length = Column(Integer, default=0)
    word_count = Column(Integer, default=0)
    depth_score = Column(Float)
    specificity_score = Column(Float)
    actionability_score = Column(Float)
    overall_quality_score = Column(Float)
    evidence_present = Column(Boolean, default=False)
    examples_present = Column(Boolean, default=False)
    forward_looking = Column(Boolean, default=False)
    balanced_feedback = Column(Boolean, default=False)
    issues_detected = Column(JSON)  # [{"type": ..., "description": ...}]
    improvement_suggestions = Column(JSON)
    ai_model_used = Column(String)
    ai_confidence_score = Column(Float)
    analyzed_at = Column(DateTime, nullable=False)


class ManagerCapabilityMetric(Base):
    """Capability scorecard, one row per (manager, company, cycle)."""
    __tablename__ = "manager_capability_metrics"
    __table_args__ = (
        UniqueConstraint("manager_id", "company_id", "cycle_id", name="uq_capability_manager_cycle"),
    )

    id = Column(Integer, primary_key=True, index=True)
    manager_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=True, index=True)

    # Timeliness
    total_reviews_assigned = Column(Integer, default=0)
    reviews_completed = Column(Integer, default=0)
    reviews_on_time = Column(Integer, default=0)
    reviews_late = Column(Integer, default=0)
    avg_days_before_deadline = Column(Float, default=0)
    timeliness_score = Column(Float)

    # Comment quality
    avg_comment_length = Column(Float, default=0)  # Words per comment
    avg_comment_depth_score = Column(Float, default=0)
    comments_with_examples = Column(Integer, default=0)
    comments_with_evidence = Column(Integer, default=0)
    comment_quality_score = Column(Float)

    # Differentiation
    avg_score_given = Column(Float, default=0)
    score_std_deviation = Column(Float, default=0)
    score_distribution = Column(JSON)
    total_scores = Column(Integer, default=0)
    differentiation_score = Column(Float)

    calibration_alignment_score = Column(Float)
    overall_capability_score = Column(Float)
    capability_trend = Column(String)
    calculation_details = Column(JSON)
    calculated_at = Column(DateTime, nullable=False)


class ManagerHRFlag(Base):
    __tablename__ = "manager_hr_flags"

    id = Column(Integer, primary_key=True, index=True)
    manager_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    cycle_id = Column(Integer, ForeignKey("appraisal_cycles.id"), nullable=True, index=True)
    flag_type = Column(String, nullable=False, index=True)
    flag_severity = Column(String, nullable=False)  # low, medium, high
    flag_title = Column(String, nullable=False)
    flag_description = Column(Text)
    evidence_data = Column(JSON)
    affected_employees_count = Column(Integer, default=0)
    human_review_required = Column(Boolean, default=True, nullable=False)
    is_resolved = Column(Boolean, default=False, nullable=False, index=True)
    resolved_by = Column(Integer, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# At most one open flag per (manager, company, cycle, type); NULL cycles share slot 0
Index(
    "uq_open_flag",
    ManagerHRFlag.manager_id,
    ManagerHRFlag.company_id,
    func.coalesce(ManagerHRFlag.cycle_id, 0),
    ManagerHRFlag.flag_type,
    unique=True,
    postgresql_where=ManagerHRFlag.is_resolved.is_(False),
    sqlite_where=ManagerHRFlag.is_resolved.is_(False),
)
