import pytest
from datetime import date, datetime, timedelta, timezone

from app.models.company import Company
from app.services.review_timeliness import ReviewTiming, TimelinessService, compute_timeliness, resolve_deadline

DEADLINE = datetime(2024, 12, 15, 17, 0)

def _submitted(days_before_deadline):
    return ReviewTiming("completed", DEADLINE - timedelta(days=days_before_deadline), DEADLINE)

def test_mostly_early_reviews_get_bonus_and_penalty():
    """Test 9 early reviews and 1 late review: 90 base, +10 early bonus, -5 late penalty."""
    reviews = [_submitted(5) for _ in range(9)] + [_submitted(-1)]
    metrics = compute_timeliness(reviews)
    assert metrics.total_reviews_assigned == 10
    assert metrics.reviews_completed == 10
    assert metrics.reviews_on_time == 9
    assert metrics.reviews_late == 1
    assert metrics.avg_days_before_deadline == pytest.approx(4.4)
    assert metrics.timeliness_score == 95

def test_no_assignments_scores_full_marks():
    metrics = compute_timeliness([])
    assert metrics.total_reviews_assigned == 0
    assert metrics.timeliness_score == 100

def test_pending_reviews_count_against_completion_rate():
    """Test an unsubmitted review stays in the denominator."""
    reviews = [_submitted(1), ReviewTiming("pending", None, DEADLINE)]
    metrics = compute_timeliness(reviews)
    assert metrics.reviews_completed == 1
    assert metrics.reviews_on_time == 1
    assert metrics.timeliness_score == 50

def test_submitted_exactly_at_deadline_is_on_time():
    metrics = compute_timeliness([_submitted(0)])
    assert metrics.reviews_on_time == 1
    assert metrics.reviews_late == 0

def test_completed_without_timestamp_is_measured_against_now():
    """Test a completed review with no submission time is judged at the reference time."""
    reviews = [ReviewTiming("completed", None, DEADLINE)]
    metrics = compute_timeliness(reviews, now=DEADLINE + timedelta(days=5))
    assert metrics.reviews_completed == 1
    assert metrics.reviews_late == 1
    assert metrics.avg_days_before_deadline == pytest.approx(-5)
    assert metrics.timeliness_score == 0

def test_missing_deadline_counts_as_on_time():
    reviews = [ReviewTiming("completed", datetime(2024, 6, 1), None)]
    metrics = compute_timeliness(reviews)
    assert metrics.reviews_on_time == 1
    assert metrics.timeliness_score == 100

def test_timezone_aware_submission_is_normalized():
    """Test aware and naive datetimes compare on the UTC timeline."""
    submitted = datetime(2024, 12, 15, 18, 0, tzinfo=timezone(timedelta(hours=2)))  # 16:00 UTC
    metrics = compute_timeliness([ReviewTiming("completed", submitted, DEADLINE)])
    assert metrics.reviews_on_time == 1

def test_deadline_falls_back_to_cycle_end_date():
    assert resolve_deadline(None, date(2024, 12, 31)) == datetime(2024, 12, 31)
    assert resolve_deadline(DEADLINE, date(2024, 12, 31)) == DEADLINE
    assert resolve_deadline(None, None) is None

def test_service_scopes_reviews_to_manager_and_company(db_session, company, make_cycle, add_review):
    """Test the service only reads the requested manager's reviews in the company."""
    cycle = make_cycle(evaluation_deadline=DEADLINE)
    add_review(cycle, manager_id=1, employee_id=10, submitted_at=DEADLINE - timedelta(days=5))
    add_review(cycle, manager_id=1, employee_id=11, submitted_at=DEADLINE + timedelta(days=2))
    add_review(cycle, manager_id=2, employee_id=12, submitted_at=DEADLINE + timedelta(days=9))

    other = Company(name="Beta Corp")
    db_session.add(other)
    db_session.commit()
    other_cycle = make_cycle(company_id=other.id, evaluation_deadline=DEADLINE)
    add_review(other_cycle, manager_id=1, employee_id=13, submitted_at=DEADLINE + timedelta(days=9))

    metrics = TimelinessService(db_session, company.id).calculate(1, cycle.id)
    assert metrics.total_reviews_assigned == 2
    assert metrics.reviews_on_time == 1
    assert metrics.reviews_late == 1
    # base 50, avg 1.5 days early earns no bonus, one late review costs 5
    assert metrics.timeliness_score == 45

def test_reviews_without_deadline_stay_out_of_average():
    """Test undated reviews count as on time without diluting the days-early average."""
    reviews = [
        _submitted(4),
        ReviewTiming("completed", datetime(2024, 6, 1), None),
        ReviewTiming("completed", datetime(2024, 6, 1), None),
        ReviewTiming("pending", None, DEADLINE),
    ]
    metrics = compute_timeliness(reviews)
    assert metrics.reviews_completed == 3
    assert metrics.reviews_on_time == 3
    assert metrics.avg_days_before_deadline == pytest.approx(4)
    # base 75 plus the early bonus earned by the one timed review
    assert metrics.timeliness_score == 85

def test_only_undated_reviews_average_zero():
    metrics = compute_timeliness([ReviewTiming("completed", datetime(2024, 6, 1), None)])
    assert metrics.avg_days_before_deadline == 0
    assert metrics.timeliness_score == 100
