import pytest

from healthscreen.ml.risk.config import TEXT_WEIGHTS, VOICE_WEIGHTS
from healthscreen.ml.risk.errors import ScoringError
from healthscreen.ml.risk.scorer import FlagRule, ThresholdRule, WeightTable, score_features


REFERENCE_VOICE = {
    "jitter": 0.02,
    "shimmer": 0.09,
    "pitch.mean": 120.0,
    "pitch.std": 30.0,
    "pitch.variation": 30.0 / 120.0,
    "energy": 60.0,
    "spectralFeatures.flux": 0.5,
    "familyHistory": True,
    "overweight": True,
}


def test_reference_voice_record_is_pinned():
    b = score_features(REFERENCE_VOICE, VOICE_WEIGHTS)
    assert b.contributions["jitter"] == pytest.approx(30.0)
    assert b.contributions["shimmer"] == pytest.approx(180.0)
    assert b.contributions["pitch.variation"] == pytest.approx(62.5)
    assert b.contributions["energy"] == pytest.approx(200.0 / 7.0)
    assert b.contributions["spectralFeatures.flux"] == pytest.approx(100.0)
    assert b.contributions["familyHistory"] == 15.0
    assert b.contributions["overweight"] == 15.0
    assert b.raw == pytest.approx(431.0714285714286)
    assert b.total == 95.0


def test_raw_equals_sum_of_contributions():
    b = score_features(REFERENCE_VOICE, VOICE_WEIGHTS)
    assert b.raw == pytest.approx(sum(b.contributions.values()))


def test_scoring_is_repeatable():
    assert score_features(REFERENCE_VOICE, VOICE_WEIGHTS) == score_features(REFERENCE_VOICE, VOICE_WEIGHTS)


def test_signals_at_threshold_score_the_floor():
    at_threshold = {
        "jitter": 0.01,
        "shimmer": 0.08,
        "pitch.variation": 0.0,
        "energy": 70.0,
        "spectralFeatures.flux": 0.4,
        "familyHistory": False,
        "overweight": False,
    }
    b = score_features(at_threshold, VOICE_WEIGHTS)
    assert all(v == 0.0 for v in b.contributions.values())
    assert b.total == VOICE_WEIGHTS.floor == 5.0


def test_threshold_gate_is_not_proportional_below_the_threshold():
    rule = ThresholdRule("jitter", threshold=0.01, weight=15, scale=100)
    assert rule.contribution(0.0099) == 0.0
    assert rule.contribution(0.011) == pytest.approx(16.5)


def test_below_gated_rule_scores_the_deficit():
    rule = ThresholdRule("energy", threshold=70.0, weight=20, scale=10, below=True)
    assert rule.contribution(70.0) == 0.0
    assert rule.contribution(80.0) == 0.0
    assert rule.contribution(35.0) == pytest.approx(100.0)


def test_below_gated_rule_needs_positive_threshold():
    with pytest.raises(ValueError):
        ThresholdRule("energy", threshold=0.0, weight=1, below=True)


def test_age_gate_counts_strictly_above():
    rule = FlagRule("age", weight=10, gate=40)
    assert rule.contribution(40) == 0.0
    assert rule.contribution(41) == 10.0


def test_text_all_false_scores_zero():
    record = {f: False for f in TEXT_WEIGHTS.features}
    record["age"] = 0
    b = score_features(record, TEXT_WEIGHTS)
    assert b.total == 0.0


def test_text_clamps_at_ceiling():
    record = {f: True for f in TEXT_WEIGHTS.features}
    record["age"] = 60
    b = score_features(record, TEXT_WEIGHTS)
    assert b.raw == pytest.approx(120.0)
    assert b.total == 100.0


def test_missing_feature_is_a_contract_violation():
    record = dict(REFERENCE_VOICE)
    del record["shimmer"]
    with pytest.raises(ScoringError, match="shimmer"):
        score_features(record, VOICE_WEIGHTS)


def test_non_numeric_value_is_a_contract_violation():
    record = dict(REFERENCE_VOICE, jitter=None)
    with pytest.raises(ScoringError, match="jitter"):
        score_features(record, VOICE_WEIGHTS)


def test_weight_table_rejects_duplicate_features():
    with pytest.raises(ValueError):
        WeightTable(name="dup", rules=(FlagRule("a", 1), FlagRule("a", 2)), floor=0, ceiling=10)
