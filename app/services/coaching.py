from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from app.core.scoring_rules import CapabilityRules, CoachingThreshold, DEFAULT_RULES
from app.schemas.manager_capability import CapabilityScorecard, CoachingRecommendation, CoachingReport
from app.services.base import BaseService
from app.services.capability_scorecard import CapabilityScorecardService

# area -> (title, description, action items); static per area
COACHING_CONTENT: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "timeliness": (
        "Improve Review Completion Timeliness",
        "Schedule dedicated time for performance reviews well before deadlines. "
        "Consider blocking calendar time specifically for this activity.",
        (
            "Set calendar reminders 1 week before evaluation deadline",
            "Block 30-minute slots for each review",
            "Start with direct reports you work most closely with",
        ),
    ),
    "comment_quality": (
        "Enhance Feedback Quality",
        "Your review comments could be more effective with specific examples and actionable guidance.",
        (
            "Include at least one specific example in each comment",
            "Reference measurable outcomes or achievements",
            "Provide at least one forward-looking development suggestion",
            "Balance positive recognition with constructive feedback",
        ),
    ),
    "differentiation": (
        "Differentiate Performance Ratings",
        "Consider whether all team members truly perform identically. Thoughtful differentiation "
        "helps recognize top performers and identify those needing support.",
        (
            "Review each employee against specific, measurable criteria",
            "Compare performance to role expectations, not just peer comparisons",
            "Document specific evidence supporting each rating decision",
        ),
    ),
    "calibration": (
        "Align with Organizational Standards",
        "Your initial ratings have been frequently adjusted during calibration. "
        "Understanding organizational rating standards can help.",
        (
            "Review the rating scale definitions before evaluating",
            "Consider how top performers differ from average performers",
            "Attend calibration sessions actively to understand expectations",
        ),
    ),
}


def _recommend(area: str, score: float, threshold: CoachingThreshold) -> Optional[CoachingRecommendation]:
    if score >= threshold.threshold:
        return None
    title, description, action_items = COACHING_CONTENT[area]
    return CoachingRecommendation(
        area=area,
        priority="high" if score < threshold.high_priority_below else "medium",
        title=title,
        description=description,
        action_items=list(action_items),
    )


def recommend_coaching(scorecard: CapabilityScorecard, rules: CapabilityRules = DEFAULT_RULES) -> List[CoachingRecommendation]:
    thresholds = rules.coaching
    candidates = [
        _recommend("timeliness", scorecard.timeliness_score, thresholds.timeliness),
        _recommend("comment_quality", scorecard.comment_quality_score, thresholds.comment_quality),
        _recommend("differentiation", scorecard.differentiation_score, thresholds.differentiation),
        _recommend("calibration", scorecard.calibration_alignment_score, thresholds.calibration),
    ]
    return [c for c in candidates if c is not None]


class CoachingService(BaseService):
    def __init__(self, db, org_id: Optional[int] = None, rules: CapabilityRules = DEFAULT_RULES):
        super().__init__(db, org_id)
        self.rules = rules
        self.scorecards = CapabilityScorecardService(db, org_id, rules)

    def generate(self, manager_id: int, cycle_id: Optional[int] = None) -> CoachingReport:
        self.log_info(f"Generating coaching recommendations for manager {manager_id} (cycle {cycle_id})")
        scorecard = self.scorecards.build(manager_id, cycle_id)
        return CoachingReport(
            manager_id=manager_id,
            recommendations=recommend_coaching(scorecard, self.rules),
            overall_score=scorecard.overall_capability_score,
            generated_at=datetime.now(timezone.utc),
        )
