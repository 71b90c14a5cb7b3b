from datetime import datetime, timezone
from typing import Iterable, NamedTuple, Optional

from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle, AppraisalParticipant
from app.models.calibration import CalibrationAdjustment, CalibrationSession, ManagerCalibrationAlignment
from app.schemas.manager_capability import CalibrationAlignmentResult, CalibrationSnapshot, DriftPattern
from app.services.base import BaseService


class ScoreAdjustment(NamedTuple):
    employee_id: int
    original_score: float
    adjusted_score: Optional[float]


def classify_drift(increased: int, decreased: int, adjustment_rate: float, rules: CapabilityRules = DEFAULT_RULES) -> DriftPattern:
    """First match wins: raised by calibration, lowered by calibration, scattered, aligned."""
    scoring = rules.calibration
    if increased > decreased * scoring.drift_ratio:
        return DriftPattern.CONSISTENTLY_LOW
    if decreased > increased * scoring.drift_ratio:
        return DriftPattern.CONSISTENTLY_HIGH
    if adjustment_rate > scoring.variable_adjustment_rate:
        return DriftPattern.VARIABLE
    return DriftPattern.ALIGNED


def compute_alignment(adjustments: Iterable[ScoreAdjustment], rules: CapabilityRules = DEFAULT_RULES) -> CalibrationAlignmentResult:
    unchanged = increased = decreased = 0
    total_abs_adjustment = 0.0
    max_abs_adjustment = 0.0
    employees_reviewed = 0

    for adjustment in adjustments:
        employees_reviewed += 1
        adjusted = adjustment.original_score if adjustment.adjusted_score is None else adjustment.adjusted_score
        diff = adjusted - adjustment.original_score
        if diff == 0:
            unchanged += 1
        elif diff > 0:
            increased += 1
        else:
            decreased += 1
        total_abs_adjustment += abs(diff)
        max_abs_adjustment = max(max_abs_adjustment, abs(diff))

    if employees_reviewed:
        avg_adjustment = total_abs_adjustment / employees_reviewed
        adjustment_rate = (increased + decreased) / employees_reviewed * 100
    else:
        # Nothing was calibrated, so nothing diverged
        avg_adjustment = 0.0
        adjustment_rate = 0.0
    alignment_score = 100 - adjustment_rate

    return CalibrationAlignmentResult(
        employees_reviewed=employees_reviewed,
        scores_unchanged=unchanged,
        scores_increased=increased,
        scores_decreased=decreased,
        avg_adjustment=round_half_up(avg_adjustment),
        max_adjustment=round_half_up(max_abs_adjustment),
        adjustment_rate=round_half_up(adjustment_rate),
        alignment_score=round_half_up(alignment_score),
        drift_pattern=classify_drift(increased, decreased, adjustment_rate, rules),
        training_recommended=alignment_score < rules.calibration.training_recommended_below,
    )


class CalibrationAlignmentService(BaseService):
    """Compares a manager's original scores with calibrated outcomes for one session."""

    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules

    def fetch_adjustments(self, manager_id: int, session_id: int):
        evaluated = {
            employee_id
            for (employee_id,) in self.db.query(AppraisalParticipant.employee_id).join(
                AppraisalCycle, AppraisalParticipant.cycle_id == AppraisalCycle.id
            ).filter(
                AppraisalParticipant.manager_id == manager_id,
                AppraisalCycle.company_id == self.org_id,
            ).distinct().all()
        }
        rows = self.db.query(
            CalibrationAdjustment.employee_id,
            CalibrationAdjustment.original_score,
            CalibrationAdjustment.adjusted_score,
        ).join(
            CalibrationSession, CalibrationAdjustment.session_id == CalibrationSession.id
        ).filter(
            CalibrationAdjustment.session_id == session_id,
            CalibrationSession.company_id == self.org_id,
        ).all()
        return [ScoreAdjustment(*row) for row in rows if row[0] in evaluated]

    def calculate(self, manager_id: int, session_id: int) -> CalibrationAlignmentResult:
        self.log_info(f"Calculating calibration alignment for manager {manager_id}, session {session_id}")
        result = compute_alignment(self.fetch_adjustments(manager_id, session_id), self.rules)
        self._store_alignment(manager_id, session_id, result)
        self.log_info(
            f"Calibration alignment for manager {manager_id}: {result.alignment_score} ({result.drift_pattern.value})"
        )
        return result

    def latest_snapshot(self, manager_id: int) -> CalibrationSnapshot:
        """Most recent stored alignment for the manager, or the neutral default."""
        record = self.db.query(ManagerCalibrationAlignment).filter(
            ManagerCalibrationAlignment.manager_id == manager_id,
            ManagerCalibrationAlignment.company_id == self.org_id,
        ).order_by(
            ManagerCalibrationAlignment.calculated_at.desc(),
            ManagerCalibrationAlignment.id.desc(),
        ).first()

        if record is None:
            return CalibrationSnapshot(score=self.rules.default_calibration_score, has_data=False)

        return CalibrationSnapshot(
            score=record.alignment_score,
            has_data=True,
            session_id=record.session_id,
            adjustment_rate=record.adjustment_rate,
            drift_pattern=record.drift_pattern,
            employees_adjusted=(record.scores_increased or 0) + (record.scores_decreased or 0),
        )

    def _store_alignment(self, manager_id: int, session_id: int, result: CalibrationAlignmentResult):
        record = self.db.query(ManagerCalibrationAlignment).filter(
            ManagerCalibrationAlignment.manager_id == manager_id,
            ManagerCalibrationAlignment.session_id == session_id,
        ).first()
        if record is None:
            record = ManagerCalibrationAlignment(manager_id=manager_id, session_id=session_id)
            self.db.add(record)

        record.company_id = self.org_id
        record.employees_reviewed = result.employees_reviewed
        record.scores_unchanged = result.scores_unchanged
        record.scores_increased = result.scores_increased
        record.scores_decreased = result.scores_decreased
        record.avg_adjustment = result.avg_adjustment
        record.max_adjustment = result.max_adjustment
        record.adjustment_rate = result.adjustment_rate
        record.alignment_score = result.alignment_score
        record.drift_pattern = result.drift_pattern.value
        record.training_recommended = result.training_recommended
        record.calculated_at = datetime.now(timezone.utc).replace(tzinfo=None)
        self.commit()
        return record
