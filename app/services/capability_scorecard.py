from datetime import datetime, timezone
from typing import List, Optional

from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle
from app.models.manager_capability import ManagerCapabilityMetric
from app.schemas.manager_capability import (
    CapabilityScorecard,
    CapabilityTrend,
    ScorecardBreakdown,
)
from app.services.base import BaseService
from app.services.calibration_alignment import CalibrationAlignmentService
from app.services.comment_quality import CommentQualityService
from app.services.review_timeliness import TimelinessService
from app.services.score_variance import ScoreVarianceService


def weighted_overall(
    timeliness: float,
    comment_quality: float,
    differentiation: float,
    calibration_alignment: float,
    rules: CapabilityRules = DEFAULT_RULES,
) -> float:
    weights = rules.weights
    return (
        timeliness * weights.timeliness
        + comment_quality * weights.comment_quality
        + differentiation * weights.differentiation
        + calibration_alignment * weights.calibration_alignment
    )


def classify_trend(overall: float, rules: CapabilityRules = DEFAULT_RULES) -> CapabilityTrend:
    # Only two bands until scorecards keep a per-cycle history to diff against
    if overall >= rules.stable_trend_min:
        return CapabilityTrend.STABLE
    return CapabilityTrend.DECLINING


class CapabilityScorecardService(BaseService):
    """Fans the four capability signals into one weighted scorecard and stores it."""

    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules
        self.timeliness = TimelinessService(db, org_id, rules)
        self.comments = CommentQualityService(db, org_id, rules)
        self.variance = ScoreVarianceService(db, org_id, rules)
        self.calibration = CalibrationAlignmentService(db, org_id, rules)

    def build(self, manager_id: int, cycle_id: Optional[int] = None, now: Optional[datetime] = None) -> CapabilityScorecard:
        self.log_info(f"Generating capability scorecard for manager {manager_id} (cycle {cycle_id})")

        # Independent reads; the weighted sum waits on all four
        timeliness = self.timeliness.calculate(manager_id, cycle_id, now=now)
        comment_quality = self.comments.analyze_batch(manager_id, cycle_id)
        score_variance = self.variance.calculate(manager_id, cycle_id)
        calibration = self.calibration.latest_snapshot(manager_id)

        if comment_quality.average_scores is None:
            comment_score = self.rules.default_comment_quality_score
        else:
            comment_score = round_half_up(comment_quality.average_scores.avg_overall_score)

        overall = weighted_overall(
            timeliness.timeliness_score,
            comment_score,
            score_variance.differentiation_score,
            calibration.score,
            self.rules,
        )
        overall = min(100.0, max(0.0, overall))

        scorecard = CapabilityScorecard(
            manager_id=manager_id,
            company_id=self.org_id,
            cycle_id=cycle_id,
            timeliness_score=timeliness.timeliness_score,
            comment_quality_score=comment_score,
            differentiation_score=score_variance.differentiation_score,
            calibration_alignment_score=calibration.score,
            overall_capability_score=round_half_up(overall),
            capability_trend=classify_trend(overall, self.rules),
            breakdown=ScorecardBreakdown(
                timeliness=timeliness,
                comment_quality=comment_quality.average_scores,
                score_variance=score_variance,
                calibration_alignment=calibration,
            ),
            calculated_at=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        self._store(scorecard)
        self.log_info(
            f"Scorecard for manager {manager_id}: overall {scorecard.overall_capability_score} "
            f"({scorecard.capability_trend.value})"
        )
        return scorecard

    def _store(self, scorecard: CapabilityScorecard) -> ManagerCapabilityMetric:
        query = self.db.query(ManagerCapabilityMetric).filter(
            ManagerCapabilityMetric.manager_id == scorecard.manager_id,
            ManagerCapabilityMetric.company_id == scorecard.company_id,
        )
        if scorecard.cycle_id is None:
            query = query.filter(ManagerCapabilityMetric.cycle_id.is_(None))
        else:
            query = query.filter(ManagerCapabilityMetric.cycle_id == scorecard.cycle_id)

        record = query.first()
        if record is None:
            record = ManagerCapabilityMetric(
                manager_id=scorecard.manager_id,
                company_id=scorecard.company_id,
                cycle_id=scorecard.cycle_id,
            )
            self.db.add(record)

        breakdown = scorecard.breakdown
        timeliness = breakdown.timeliness
        comments = breakdown.comment_quality
        variance = breakdown.score_variance

        record.total_reviews_assigned = timeliness.total_reviews_assigned
        record.reviews_completed = timeliness.reviews_completed
        record.reviews_on_time = timeliness.reviews_on_time
        record.reviews_late = timeliness.reviews_late
        record.avg_days_before_deadline = timeliness.avg_days_before_deadline
        record.timeliness_score = scorecard.timeliness_score

        record.avg_comment_length = comments.avg_word_count if comments else 0
        record.avg_comment_depth_score = comments.avg_depth_score if comments else 0
        record.comments_with_examples = comments.comments_with_examples if comments else 0
        record.comments_with_evidence = comments.comments_with_evidence if comments else 0
        record.comment_quality_score = scorecard.comment_quality_score

        record.avg_score_given = variance.avg_score
        record.score_std_deviation = variance.std_deviation
        record.score_distribution = {str(k): v for k, v in variance.distribution.items()}
        record.total_scores = variance.total_scores
        record.differentiation_score = scorecard.differentiation_score

        record.calibration_alignment_score = scorecard.calibration_alignment_score
        record.overall_capability_score = scorecard.overall_capability_score
        record.capability_trend = scorecard.capability_trend.value
        record.calculation_details = breakdown.model_dump(mode="json")
        record.calculated_at = scorecard.calculated_at

        self.commit()
        return record

    def previous_cycles(self, manager_id: int, exclude_cycle_id: Optional[int], limit: int) -> List[ManagerCapabilityMetric]:
        """
        Stored scorecards for cycles that precede `exclude_cycle_id`, latest first.

        Cycles are placed by end date, else by evaluation deadline, else by
        creation order; a later cycle is never returned as history.
        """
        query = self.db.query(ManagerCapabilityMetric).join(
            AppraisalCycle, ManagerCapabilityMetric.cycle_id == AppraisalCycle.id
        ).filter(
            ManagerCapabilityMetric.manager_id == manager_id,
            ManagerCapabilityMetric.company_id == self.org_id,
        )
        order = AppraisalCycle.end_date.desc()
        if exclude_cycle_id is not None:
            current = self.db.get(AppraisalCycle, exclude_cycle_id)
            if current is None:
                return []
            query = query.filter(ManagerCapabilityMetric.cycle_id != exclude_cycle_id)
            if current.end_date is not None:
                query = query.filter(AppraisalCycle.end_date < current.end_date)
            elif current.evaluation_deadline is not None:
                query = query.filter(AppraisalCycle.evaluation_deadline < current.evaluation_deadline)
                order = AppraisalCycle.evaluation_deadline.desc()
            else:
                query = query.filter(AppraisalCycle.id < current.id)
                order = AppraisalCycle.id.desc()
        return query.order_by(order, AppraisalCycle.id.desc()).limit(limit).all()

    def list_scorecards(self, manager_id: Optional[int] = None, cycle_id: Optional[int] = None) -> List[ManagerCapabilityMetric]:
        query = self.db.query(ManagerCapabilityMetric).filter(ManagerCapabilityMetric.company_id == self.org_id)
        if manager_id is not None:
            query = query.filter(ManagerCapabilityMetric.manager_id == manager_id)
        if cycle_id is not None:
            query = query.filter(ManagerCapabilityMetric.cycle_id == cycle_id)
        return query.order_by(ManagerCapabilityMetric.calculated_at.desc()).all()
