import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from app.core.numbers import round_half_up
from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES
from app.models.appraisal import AppraisalCycle, AppraisalParticipant, GoalRatingSubmission
from app.schemas.manager_capability import ScoreVarianceResult
from app.services.base import BaseService


def differentiation_score(std_deviation: float, rules: CapabilityRules = DEFAULT_RULES) -> float:
    """Linear penalty on the distance from the reference spread of ratings."""
    scoring = rules.variance
    deviation = abs(std_deviation - scoring.ideal_std_dev)
    return max(0.0, 100 - deviation * scoring.deviation_penalty)


def score_distribution(scores: Sequence[float]) -> Dict[int, int]:
    distribution: Dict[int, int] = {}
    for score in scores:
        bucket = int(math.floor(score + 0.5))  # Half-up, so 3.5 lands in 4
        distribution[bucket] = distribution.get(bucket, 0) + 1
    return dict(sorted(distribution.items()))


def compute_score_variance(scores: Sequence[float], rules: CapabilityRules = DEFAULT_RULES) -> ScoreVarianceResult:
    if len(scores) == 0:
        return ScoreVarianceResult(
            avg_score=0.0,
            std_deviation=0.0,
            distribution={},
            differentiation_score=rules.variance.default_differentiation_score,
            total_scores=0,
        )

    values = np.asarray(scores, dtype=float)
    avg = float(values.mean())
    std_dev = float(values.std())  # Population estimator (ddof=0)

    return ScoreVarianceResult(
        avg_score=round_half_up(avg),
        std_deviation=round_half_up(std_dev),
        distribution=score_distribution(scores),
        differentiation_score=round_half_up(differentiation_score(std_dev, rules)),
        total_scores=len(scores),
    )


class ScoreVarianceService(BaseService):
    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules

    def fetch_scores(self, manager_id: int, cycle_id: Optional[int] = None) -> List[float]:
        query = self.db.query(GoalRatingSubmission.manager_score).join(
            AppraisalParticipant, GoalRatingSubmission.participant_id == AppraisalParticipant.id
        ).join(
            AppraisalCycle, AppraisalParticipant.cycle_id == AppraisalCycle.id
        ).filter(
            AppraisalParticipant.manager_id == manager_id,
            AppraisalCycle.company_id == self.org_id,
            GoalRatingSubmission.manager_score.isnot(None),
        )
        if cycle_id is not None:
            query = query.filter(AppraisalParticipant.cycle_id == cycle_id)
        return [score for (score,) in query.all()]

    def calculate(self, manager_id: int, cycle_id: Optional[int] = None) -> ScoreVarianceResult:
        self.log_info(f"Calculating score variance for manager {manager_id} (cycle {cycle_id})")
        result = compute_score_variance(self.fetch_scores(manager_id, cycle_id), self.rules)
        self.log_info(
            f"Score variance for manager {manager_id}: avg {result.avg_score}, "
            f"stddev {result.std_deviation}, differentiation {result.differentiation_score}"
        )
        return result
