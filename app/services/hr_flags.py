"""
HR-only compliance flags raised from a freshly built capability scorecard.

Rules are evaluated independently; a triggered rule only inserts a flag when
no unresolved flag of the same type exists for the manager, company and cycle,
so repeated runs never stack duplicate alerts.
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import FlagAlreadyResolvedError, RecordNotFoundError
from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.manager_capability import ManagerHRFlag
from app.schemas.manager_capability import CapabilityScorecard, HRFlag, HRFlagReport
from app.services.base import BaseService
from app.services.capability_scorecard import CapabilityScorecardService


def evaluate_current_rules(scorecard: CapabilityScorecard, rules: CapabilityRules = DEFAULT_RULES) -> List[HRFlag]:
    """Rules that need nothing beyond the scorecard itself."""
    thresholds = rules.flags
    breakdown = scorecard.breakdown
    timeliness = breakdown.timeliness
    comments = breakdown.comment_quality
    variance = breakdown.score_variance
    calibration = breakdown.calibration_alignment
    flags: List[HRFlag] = []

    if scorecard.timeliness_score < thresholds.poor_timeliness.threshold:
        flags.append(HRFlag(
            flag_type="poor_timeliness",
            flag_severity=thresholds.poor_timeliness.severity,
            flag_title="Below Target Review Completion Rate",
            flag_description=(
                f"Manager has {timeliness.reviews_on_time} of {timeliness.total_reviews_assigned} reviews "
                f"completed on time ({round_half_up(scorecard.timeliness_score, 0):.0f}%)."
            ),
            evidence_data={"timeliness": timeliness.model_dump(mode="json")},
            affected_employees_count=timeliness.reviews_late,
        ))

    if scorecard.comment_quality_score < thresholds.low_comment_quality.threshold:
        flags.append(HRFlag(
            flag_type="low_comment_quality",
            flag_severity=thresholds.low_comment_quality.severity,
            flag_title="Review Comments Need Improvement",
            flag_description=(
                f"Manager's average comment quality score is {round_half_up(scorecard.comment_quality_score, 0):.0f}/100. "
                "Comments may lack depth, evidence, or actionable guidance."
            ),
            evidence_data={"comment_quality": comments.model_dump(mode="json") if comments else None},
            affected_employees_count=comments.total_comments if comments else 0,
        ))

    superficial = thresholds.superficial_comments
    if (
        comments is not None
        and scorecard.comment_quality_score < superficial.threshold
        and comments.avg_word_count < superficial.min_words
    ):
        flags.append(HRFlag(
            flag_type="superficial_comments",
            flag_severity=superficial.severity,
            flag_title="Superficial Review Comments",
            flag_description=(
                f"Manager's comments average {comments.avg_word_count:.1f} words with a quality score of "
                f"{round_half_up(scorecard.comment_quality_score, 0):.0f}/100. Feedback is too brief to support rating decisions."
            ),
            evidence_data={"comment_quality": comments.model_dump(mode="json")},
            affected_employees_count=comments.total_comments,
        ))

    # Rating bias rules only apply once the manager has actually given scores
    if variance.total_scores > 0:
        leniency = thresholds.extreme_leniency
        if variance.avg_score > leniency.avg_threshold and variance.std_deviation < leniency.std_dev_max:
            flags.append(HRFlag(
                flag_type="extreme_leniency",
                flag_severity=leniency.severity,
                flag_title="Potential Leniency Bias Detected",
                flag_description=(
                    f"Manager's average score is {variance.avg_score:.2f} with low variance "
                    f"({variance.std_deviation:.2f}). This may indicate inflated ratings without differentiation."
                ),
                evidence_data={"score_variance": variance.model_dump(mode="json")},
                affected_employees_count=variance.total_scores,
            ))

        severity = thresholds.extreme_severity
        if variance.avg_score < severity.avg_threshold and variance.std_deviation < severity.std_dev_max:
            flags.append(HRFlag(
                flag_type="extreme_severity",
                flag_severity=severity.severity,
                flag_title="Potential Severity Bias Detected",
                flag_description=(
                    f"Manager's average score is {variance.avg_score:.2f} with low variance "
                    f"({variance.std_deviation:.2f}). This may indicate overly harsh ratings."
                ),
                evidence_data={"score_variance": variance.model_dump(mode="json")},
                affected_employees_count=variance.total_scores,
            ))

    drift = thresholds.calibration_drift
    if calibration.has_data and (calibration.adjustment_rate or 0) > drift.threshold:
        flags.append(HRFlag(
            flag_type="calibration_drift",
            flag_severity=drift.severity,
            flag_title="Ratings Frequently Adjusted in Calibration",
            flag_description=(
                f"{calibration.adjustment_rate:.0f}% of this manager's ratings were changed during calibration "
                f"(pattern: {calibration.drift_pattern.value if calibration.drift_pattern else 'unknown'})."
            ),
            evidence_data={"calibration_alignment": calibration.model_dump(mode="json")},
            affected_employees_count=calibration.employees_adjusted,
        ))

    if scorecard.overall_capability_score < thresholds.training_needed.threshold:
        flags.append(HRFlag(
            flag_type="training_needed",
            flag_severity=thresholds.training_needed.severity,
            flag_title="Manager Development Recommended",
            flag_description=(
                f"Overall capability score of {round_half_up(scorecard.overall_capability_score, 0):.0f}/100 suggests this manager "
                "would benefit from additional training on performance review best practices."
            ),
            evidence_data={"scorecard": scorecard.model_dump(mode="json")},
            affected_employees_count=timeliness.total_reviews_assigned,
        ))

    return flags


class HRFlagService(BaseService):
    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules
        self.scorecards = CapabilityScorecardService(db, org_id, rules)

    def generate(self, manager_id: int, cycle_id: Optional[int] = None) -> HRFlagReport:
        self.log_info(f"Generating HR flags for manager {manager_id} (cycle {cycle_id})")
        scorecard = self.scorecards.build(manager_id, cycle_id)

        flags = evaluate_current_rules(scorecard, self.rules)
        if cycle_id is not None:
            flags.extend(self._evaluate_history_rules(scorecard))

        created = 0
        for flag in flags:
            if self._has_open_flag(manager_id, cycle_id, flag.flag_type):
                continue
            try:
                # The open-flag index settles concurrent runs racing past the check above
                with self.db.begin_nested():
                    self.db.add(ManagerHRFlag(
                        manager_id=manager_id,
                        company_id=self.org_id,
                        cycle_id=cycle_id,
                        flag_type=flag.flag_type,
                        flag_severity=flag.flag_severity,
                        flag_title=flag.flag_title,
                        flag_description=flag.flag_description,
                        evidence_data=flag.evidence_data,
                        affected_employees_count=flag.affected_employees_count,
                        human_review_required=True,
                        is_resolved=False,
                    ))
            except IntegrityError:
                self.log_info(f"Open {flag.flag_type} flag for manager {manager_id} already stored")
                continue
            flag.is_new = True
            created += 1
        self.commit()

        self.log_info(f"HR flags for manager {manager_id}: {len(flags)} triggered, {created} new")
        return HRFlagReport(flags=flags, new_flags_created=created, scorecard=scorecard)

    def _evaluate_history_rules(self, scorecard: CapabilityScorecard) -> List[HRFlag]:
        """Rules that compare this cycle with the manager's earlier stored cycles."""
        thresholds = self.rules.flags
        flags: List[HRFlag] = []

        chronic = thresholds.chronic_lateness
        if scorecard.timeliness_score < chronic.threshold:
            earlier = self.scorecards.previous_cycles(scorecard.manager_id, scorecard.cycle_id, chronic.cycles - 1)
            if len(earlier) == chronic.cycles - 1 and all(
                (m.timeliness_score if m.timeliness_score is not None else 100) < chronic.threshold for m in earlier
            ):
                flags.append(HRFlag(
                    flag_type="chronic_lateness",
                    flag_severity=chronic.severity,
                    flag_title="Chronic Late Review Submission",
                    flag_description=(
                        f"Timeliness has been below {chronic.threshold:.0f} for {chronic.cycles} consecutive cycles "
                        f"(current: {round_half_up(scorecard.timeliness_score, 0):.0f})."
                    ),
                    evidence_data={
                        "timeliness": scorecard.breakdown.timeliness.model_dump(mode="json"),
                        "previous_cycles": [
                            {"cycle_id": m.cycle_id, "timeliness_score": m.timeliness_score} for m in earlier
                        ],
                    },
                    affected_employees_count=scorecard.breakdown.timeliness.reviews_late,
                ))

        inflation = thresholds.consistent_inflation
        variance = scorecard.breakdown.score_variance
        if variance.total_scores > 0 and variance.avg_score > inflation.avg_threshold:
            earlier = self.scorecards.previous_cycles(scorecard.manager_id, scorecard.cycle_id, inflation.cycles - 1)
            if len(earlier) == inflation.cycles - 1 and all(
                (m.total_scores or 0) > 0 and (m.avg_score_given or 0) > inflation.avg_threshold for m in earlier
            ):
                flags.append(HRFlag(
                    flag_type="consistent_inflation",
                    flag_severity=inflation.severity,
                    flag_title="Consistently Inflated Ratings",
                    flag_description=(
                        f"Average score given has exceeded {inflation.avg_threshold} for {inflation.cycles} "
                        f"consecutive cycles (current: {variance.avg_score:.2f})."
                    ),
                    evidence_data={
                        "score_variance": variance.model_dump(mode="json"),
                        "previous_cycles": [
                            {"cycle_id": m.cycle_id, "avg_score_given": m.avg_score_given} for m in earlier
                        ],
                    },
                    affected_employees_count=variance.total_scores,
                ))

        return flags

    def _has_open_flag(self, manager_id: int, cycle_id: Optional[int], flag_type: str) -> bool:
        query = self.db.query(ManagerHRFlag.id).filter(
            ManagerHRFlag.manager_id == manager_id,
            ManagerHRFlag.company_id == self.org_id,
            ManagerHRFlag.flag_type == flag_type,
            ManagerHRFlag.is_resolved.is_(False),
        )
        if cycle_id is None:
            query = query.filter(ManagerHRFlag.cycle_id.is_(None))
        else:
            query = query.filter(ManagerHRFlag.cycle_id == cycle_id)
        return query.first() is not None

    def list_flags(
        self,
        manager_id: Optional[int] = None,
        cycle_id: Optional[int] = None,
        include_resolved: bool = False,
    ) -> List[ManagerHRFlag]:
        query = self.db.query(ManagerHRFlag).filter(ManagerHRFlag.company_id == self.org_id)
        if manager_id is not None:
            query = query.filter(ManagerHRFlag.manager_id == manager_id)
        if cycle_id is not None:
            query = query.filter(ManagerHRFlag.cycle_id == cycle_id)
        if not include_resolved:
            query = query.filter(ManagerHRFlag.is_resolved.is_(False))
        return query.order_by(ManagerHRFlag.id.desc()).all()

    def resolve(self, flag_id: int, resolved_by: int, resolution_notes: Optional[str] = None) -> ManagerHRFlag:
        flag = self.db.query(ManagerHRFlag).filter(
            ManagerHRFlag.id == flag_id,
            ManagerHRFlag.company_id == self.org_id,
        ).first()
        if flag is None:
            raise RecordNotFoundError("HR flag", flag_id)
        if flag.is_resolved:
            raise FlagAlreadyResolvedError(flag_id)

        flag.is_resolved = True
        flag.resolved_by = resolved_by
        flag.resolved_at = datetime.now(timezone.utc).replace(tzinfo=None)
        flag.resolution_notes = resolution_notes
        self.commit()
        self.log_info(f"HR flag {flag_id} ({flag.flag_type}) resolved by user {resolved_by}")
        return flag
