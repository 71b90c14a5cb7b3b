"""
Scoring constants for the manager capability engine.

All weights, thresholds and keyword lexicons live here as frozen models built
once at import time. Services receive a `CapabilityRules` instance by
reference (defaulting to `DEFAULT_RULES`) instead of reading module globals.
"""
import math
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict, model_validator


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class ScoringWeights(_FrozenModel):
    timeliness: float = 0.25
    comment_quality: float = 0.30
    differentiation: float = 0.20
    calibration_alignment: float = 0.25

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "ScoringWeights":
        total = math.fsum([
            self.timeliness,
            self.comment_quality,
            self.differentiation,
            self.calibration_alignment,
        ])
        if total != 1.0:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")
        return self


class FlagRule(_FrozenModel):
    severity: str
    threshold: Optional[float] = None
    avg_threshold: Optional[float] = None
    std_dev_max: Optional[float] = None
    min_words: Optional[int] = None
    cycles: Optional[int] = None


class FlagThresholds(_FrozenModel):
    poor_timeliness: FlagRule = FlagRule(threshold=80, severity="medium")
    chronic_lateness: FlagRule = FlagRule(threshold=60, cycles=2, severity="high")
    low_comment_quality: FlagRule = FlagRule(threshold=50, severity="medium")
    superficial_comments: FlagRule = FlagRule(threshold=50, min_words=30, severity="high")
    extreme_leniency: FlagRule = FlagRule(avg_threshold=4.5, std_dev_max=0.3, severity="medium")
    extreme_severity: FlagRule = FlagRule(avg_threshold=2.5, std_dev_max=0.3, severity="high")
    calibration_drift: FlagRule = FlagRule(threshold=30, severity="medium")
    consistent_inflation: FlagRule = FlagRule(avg_threshold=4.5, cycles=3, severity="high")
    training_needed: FlagRule = FlagRule(threshold=60, severity="medium")


class CommentLexicon(_FrozenModel):
    """Lowercase keywords matched as substrings of the lowercased comment."""
    evidence: Tuple[str, ...] = (
        "achieved", "delivered", "completed", "resulted", "measured", "demonstrated",
        "exceeded", "met", "improved", "increased", "decreased", "reduced",
    )
    examples: Tuple[str, ...] = (
        "for example", "such as", "specifically", "instance", "when", "during", "project",
    )
    forward_looking: Tuple[str, ...] = (
        "should", "could", "recommend", "suggest", "next", "going forward",
        "continue", "develop", "improve", "focus on", "work on",
    )
    positive: Tuple[str, ...] = (
        "excellent", "great", "strong", "good", "well", "effective", "impressive", "outstanding",
    )
    development: Tuple[str, ...] = (
        "improve", "develop", "area", "opportunity", "challenge", "consider", "grow",
    )
    generic_phrases: Tuple[str, ...] = (
        "good job", "well done", "keep it up", "great work", "no issues", "satisfactory",
    )
    action_verbs: Tuple[str, ...] = (
        "should", "could", "recommend", "suggest", "consider", "focus", "develop", "improve",
    )


class CommentScoring(_FrozenModel):
    confidence: int = 85
    too_short_words: int = 30
    unbalanced_min_words: int = 20
    generic_max_chars: int = 100
    length_weight: float = 0.15
    depth_weight: float = 0.30
    specificity_weight: float = 0.30
    actionability_weight: float = 0.25


class TimelinessScoring(_FrozenModel):
    early_bonus_days: float = 3
    early_bonus: float = 10
    late_penalty: float = 5


class VarianceScoring(_FrozenModel):
    ideal_std_dev: float = 0.8
    deviation_penalty: float = 50
    default_differentiation_score: float = 50


class CalibrationScoring(_FrozenModel):
    variable_adjustment_rate: float = 30
    drift_ratio: float = 2
    training_recommended_below: float = 70


class CoachingThreshold(_FrozenModel):
    threshold: float
    high_priority_below: float


class CoachingThresholds(_FrozenModel):
    timeliness: CoachingThreshold = CoachingThreshold(threshold=80, high_priority_below=60)
    comment_quality: CoachingThreshold = CoachingThreshold(threshold=70, high_priority_below=50)
    differentiation: CoachingThreshold = CoachingThreshold(threshold=70, high_priority_below=50)
    calibration: CoachingThreshold = CoachingThreshold(threshold=70, high_priority_below=50)


class CapabilityRules(_FrozenModel):
    weights: ScoringWeights = ScoringWeights()
    flags: FlagThresholds = FlagThresholds()
    lexicon: CommentLexicon = CommentLexicon()
    comments: CommentScoring = CommentScoring()
    timeliness: TimelinessScoring = TimelinessScoring()
    variance: VarianceScoring = VarianceScoring()
    calibration: CalibrationScoring = CalibrationScoring()
    coaching: CoachingThresholds = CoachingThresholds()
    stable_trend_min: float = 50
    # Absence of data must not read as failure
    default_comment_quality_score: float = 50
    default_calibration_score: float = 50


DEFAULT_RULES = CapabilityRules()
