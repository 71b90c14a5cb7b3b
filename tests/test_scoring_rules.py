import math
import pytest
from pydantic import ValidationError

from app.core.scoring_rules import CapabilityRules, DEFAULT_RULES, ScoringWeights

def test_default_weights_sum_to_one():
    """Test the four component weights sum to exactly one."""
    weights = DEFAULT_RULES.weights
    assert math.fsum([
        weights.timeliness,
        weights.comment_quality,
        weights.differentiation,
        weights.calibration_alignment,
    ]) == 1.0

def test_weights_not_summing_to_one_are_rejected():
    with pytest.raises(ValidationError):
        ScoringWeights(timeliness=0.5)

def test_rules_are_immutable():
    """Test rule tables cannot be mutated at runtime."""
    with pytest.raises(ValidationError):
        DEFAULT_RULES.weights.timeliness = 0.9
    with pytest.raises(ValidationError):
        DEFAULT_RULES.stable_trend_min = 10

def test_flag_threshold_values():
    flags = DEFAULT_RULES.flags
    assert flags.poor_timeliness.threshold == 80
    assert flags.chronic_lateness.threshold == 60 and flags.chronic_lateness.cycles == 2
    assert flags.low_comment_quality.threshold == 50
    assert flags.superficial_comments.min_words == 30
    assert flags.extreme_leniency.avg_threshold == 4.5 and flags.extreme_leniency.std_dev_max == 0.3
    assert flags.extreme_severity.avg_threshold == 2.5 and flags.extreme_severity.severity == "high"
    assert flags.calibration_drift.threshold == 30
    assert flags.consistent_inflation.cycles == 3
    assert flags.training_needed.threshold == 60

def test_custom_rules_can_override_defaults():
    """Test a tenant-specific rule set leaves the shared default untouched."""
    rules = CapabilityRules(stable_trend_min=70)
    assert rules.stable_trend_min == 70
    assert DEFAULT_RULES.stable_trend_min == 50
