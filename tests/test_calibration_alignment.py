import pytest

from app.models.calibration import ManagerCalibrationAlignment
from app.schemas.manager_capability import DriftPattern
from app.services.calibration_alignment import CalibrationAlignmentService, ScoreAdjustment, compute_alignment

def _adjustments(*rows):
    return [ScoreAdjustment(*row) for row in rows]

def test_mixed_adjustments_are_variable():
    """Test one raise and one cut out of four: half the ratings moved."""
    result = compute_alignment(_adjustments((10, 3, 4), (11, 4, 2), (12, 3, None), (13, 5, 5)))
    assert result.employees_reviewed == 4
    assert result.scores_unchanged == 2
    assert result.scores_increased == 1
    assert result.scores_decreased == 1
    assert result.avg_adjustment == pytest.approx(0.75)
    assert result.max_adjustment == 2
    assert result.adjustment_rate == 50
    assert result.alignment_score == 50
    assert result.drift_pattern == DriftPattern.VARIABLE
    assert result.training_recommended

def test_ratings_raised_by_calibration_mean_manager_scores_low():
    result = compute_alignment(_adjustments((10, 3, 4), (11, 2, 3), (12, 4, 4)))
    assert result.drift_pattern == DriftPattern.CONSISTENTLY_LOW

def test_ratings_lowered_by_calibration_mean_manager_scores_high():
    result = compute_alignment(_adjustments((10, 5, 4), (11, 5, 3)))
    assert result.drift_pattern == DriftPattern.CONSISTENTLY_HIGH
    assert result.alignment_score == 0

def test_untouched_ratings_are_aligned():
    result = compute_alignment(_adjustments((10, 3, None), (11, 4, 4)))
    assert result.drift_pattern == DriftPattern.ALIGNED
    assert result.alignment_score == 100
    assert not result.training_recommended

def test_no_calibrated_employees_is_fully_aligned():
    result = compute_alignment([])
    assert result.employees_reviewed == 0
    assert result.alignment_score == 100
    assert result.drift_pattern == DriftPattern.ALIGNED

def test_service_only_counts_the_managers_employees(db_session, company, make_cycle, add_review, add_calibration):
    """Test adjustments for employees reviewed by another manager are ignored."""
    cycle = make_cycle()
    add_review(cycle, manager_id=1, employee_id=10, score=3)
    add_review(cycle, manager_id=1, employee_id=11, score=4)
    add_review(cycle, manager_id=2, employee_id=12, score=5)
    session = add_calibration([(10, 3, 4), (11, 4, None), (12, 5, 3)], cycle=cycle)

    result = CalibrationAlignmentService(db_session, company.id).calculate(1, session.id)
    assert result.employees_reviewed == 2
    assert result.scores_increased == 1
    assert result.scores_decreased == 0
    assert result.adjustment_rate == 50

def test_service_upserts_one_row_per_manager_and_session(db_session, company, make_cycle, add_review, add_calibration):
    cycle = make_cycle()
    add_review(cycle, manager_id=1, employee_id=10, score=3)
    session = add_calibration([(10, 3, 4)], cycle=cycle)
    service = CalibrationAlignmentService(db_session, company.id)

    service.calculate(1, session.id)
    service.calculate(1, session.id)

    rows = db_session.query(ManagerCalibrationAlignment).all()
    assert len(rows) == 1
    assert rows[0].drift_pattern == "consistently_low"
    assert rows[0].alignment_score == 0

def test_latest_snapshot_defaults_without_history(db_session, company):
    snapshot = CalibrationAlignmentService(db_session, company.id).latest_snapshot(1)
    assert snapshot.has_data is False
    assert snapshot.score == 50

def test_latest_snapshot_uses_most_recent_session(db_session, company, make_cycle, add_review, add_calibration):
    """Test the scorecard input comes from the newest stored alignment."""
    cycle = make_cycle()
    add_review(cycle, manager_id=1, employee_id=10, score=3)
    add_review(cycle, manager_id=1, employee_id=11, score=3)
    first = add_calibration([(10, 3, 4), (11, 3, 4)], cycle=cycle, name="First")
    second = add_calibration([(10, 3, None), (11, 3, 2)], cycle=cycle, name="Second")
    service = CalibrationAlignmentService(db_session, company.id)
    service.calculate(1, first.id)
    service.calculate(1, second.id)

    snapshot = service.latest_snapshot(1)
    assert snapshot.has_data
    assert snapshot.session_id == second.id
    assert snapshot.score == 50
    assert snapshot.adjustment_rate == 50
    assert snapshot.drift_pattern == DriftPattern.CONSISTENTLY_HIGH
    assert snapshot.employees_adjusted == 1
