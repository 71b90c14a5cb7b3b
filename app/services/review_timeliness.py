from datetime import date, datetime, time, timezone
from typing import Iterable, List, NamedTuple, Optional

from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle, AppraisalParticipant, ParticipantStatus
from app.schemas.manager_capability import TimelinessMetrics
from app.services.base import BaseService

SECONDS_PER_DAY = 86400


class ReviewTiming(NamedTuple):
    status: Optional[str]
    submitted_at: Optional[datetime]
    deadline: Optional[datetime]


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def resolve_deadline(evaluation_deadline: Optional[datetime], end_date: Optional[date]) -> Optional[datetime]:
    """Cycle deadline: the evaluation deadline, else midnight of the cycle end date."""
    if evaluation_deadline is not None:
        return evaluation_deadline
    if end_date is not None:
        return datetime.combine(end_date, time.min)
    return None


def compute_timeliness(
    reviews: Iterable[ReviewTiming],
    rules: CapabilityRules = DEFAULT_RULES,
    now: Optional[datetime] = None,
) -> TimelinessMetrics:
    """
    Score how promptly a manager submitted reviews against cycle deadlines.

    A review counts as completed when it has a submission timestamp or a
    completed status; a completed review without a timestamp is measured
    against `now`. Reviews whose cycle has no deadline count as on time and
    are left out of the average days before deadline.
    """
    now = _naive_utc(now or datetime.now(timezone.utc))
    reviews = list(reviews)

    total_assigned = len(reviews)
    completed = timed = on_time = late = 0
    total_days_before_deadline = 0.0

    for review in reviews:
        if review.status != ParticipantStatus.COMPLETED.value and review.submitted_at is None:
            continue
        completed += 1
        if review.deadline is None:
            on_time += 1
            continue

        submitted_at = _naive_utc(review.submitted_at) if review.submitted_at else now
        days_before_deadline = (_naive_utc(review.deadline) - submitted_at).total_seconds() / SECONDS_PER_DAY
        timed += 1
        total_days_before_deadline += days_before_deadline
        if days_before_deadline >= 0:
            on_time += 1
        else:
            late += 1

    avg_days_before_deadline = total_days_before_deadline / timed if timed else 0.0

    if total_assigned == 0:
        # No assignments is not a timeliness failure
        base_score = 100.0
    else:
        base_score = on_time / total_assigned * 100

    scoring = rules.timeliness
    early_bonus = scoring.early_bonus if avg_days_before_deadline > scoring.early_bonus_days else 0
    late_penalty = late * scoring.late_penalty
    score = min(100.0, max(0.0, base_score + early_bonus - late_penalty))

    return TimelinessMetrics(
        total_reviews_assigned=total_assigned,
        reviews_completed=completed,
        reviews_on_time=on_time,
        reviews_late=late,
        avg_days_before_deadline=round_half_up(avg_days_before_deadline),
        timeliness_score=round_half_up(score),
    )


class TimelinessService(BaseService):
    """Reads a manager's review assignments and scores submission timeliness."""

    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules

    def fetch_reviews(self, manager_id: int, cycle_id: Optional[int] = None) -> List[ReviewTiming]:
        query = self.db.query(
            AppraisalParticipant.status,
            AppraisalParticipant.manager_submitted_at,
            AppraisalCycle.evaluation_deadline,
            AppraisalCycle.end_date,
        ).join(AppraisalCycle, AppraisalParticipant.cycle_id == AppraisalCycle.id).filter(
            AppraisalParticipant.manager_id == manager_id,
            AppraisalCycle.company_id == self.org_id,
        )
        if cycle_id is not None:
            query = query.filter(AppraisalParticipant.cycle_id == cycle_id)

        return [
            ReviewTiming(status, submitted_at, resolve_deadline(evaluation_deadline, end_date))
            for status, submitted_at, evaluation_deadline, end_date in query.all()
        ]

    def calculate(self, manager_id: int, cycle_id: Optional[int] = None, now: Optional[datetime] = None) -> TimelinessMetrics:
        self.log_info(f"Calculating timeliness for manager {manager_id} (company {self.org_id}, cycle {cycle_id})")
        metrics = compute_timeliness(self.fetch_reviews(manager_id, cycle_id), self.rules, now=now)
        self.log_info(
            f"Timeliness for manager {manager_id}: {metrics.reviews_on_time}/{metrics.total_reviews_assigned} on time, "
            f"score {metrics.timeliness_score}"
        )
        return metrics
