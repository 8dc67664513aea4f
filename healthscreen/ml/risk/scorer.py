"""Weighted scorer: threshold-gated continuous signals plus flat-weight flags."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .errors import ScoringError


@dataclass(frozen=True)
class ThresholdRule:
    """Continuous signal that only contributes once it crosses its threshold.

    Above-gated: ``value * weight * scale`` when ``value > threshold``.
    Below-gated: ``(threshold - value) / threshold * weight * scale`` when
    ``value < threshold`` (a deficit measured relative to the threshold).
    """

    feature: str
    threshold: float
    weight: float
    scale: float = 1.0
    below: bool = False

    def __post_init__(self) -> None:
        if self.below and self.threshold <= 0:
            raise ValueError(f"below-gated rule '{self.feature}' needs a positive threshold")

    def contribution(self, value: float) -> float:
        v = float(value)
        if self.below:
            if v < self.threshold:
                return (self.threshold - v) / self.threshold * self.weight * self.scale
            return 0.0
        if v > self.threshold:
            return v * self.weight * self.scale
        return 0.0


@dataclass(frozen=True)
class FlagRule:
    """Boolean risk factor worth a flat weight when present.

    With ``gate`` set, a numeric feature counts as present when it is strictly
    greater than the gate (e.g. ``age > 40``).
    """

    feature: str
    weight: float
    gate: Optional[float] = None

    def contribution(self, value: Any) -> float:
        present = float(value) > self.gate if self.gate is not None else bool(value)
        return float(self.weight) if present else 0.0


Rule = Union[ThresholdRule, FlagRule]


@dataclass(frozen=True)
class WeightTable:
    name: str
    rules: Tuple[Rule, ...]
    floor: float
    ceiling: float

    def __post_init__(self) -> None:
        if self.floor > self.ceiling:
            raise ValueError(f"{self.name}: clamp floor {self.floor} above ceiling {self.ceiling}")
        seen = set()
        for r in self.rules:
            if r.feature in seen:
                raise ValueError(f"{self.name}: feature '{r.feature}' weighted twice")
            seen.add(r.feature)

    @property
    def features(self) -> Tuple[str, ...]:
        return tuple(r.feature for r in self.rules)


@dataclass(frozen=True)
class ScoreBreakdown:
    contributions: Dict[str, float]
    raw: float  # sum of contributions, before clamping
    total: float

    def as_dict(self) -> Dict[str, float]:
        return dict(self.contributions)


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def score_features(record: Mapping[str, Any], table: WeightTable) -> ScoreBreakdown:
    """Map a feature record to per-feature contributions and a clamped total."""
    missing = [f for f in table.features if f not in record]
    if missing:
        raise ScoringError(
            f"{table.name} weight table references features missing from the record: {', '.join(missing)}"
        )

    contributions: Dict[str, float] = {}
    for rule in table.rules:
        value = record[rule.feature]
        try:
            contributions[rule.feature] = float(rule.contribution(value))
        except (TypeError, ValueError) as e:
            raise ScoringError(f"{table.name}: feature '{rule.feature}' has non-numeric value {value!r}") from e

    raw = sum(contributions.values())
    return ScoreBreakdown(
        contributions=contributions,
        raw=float(raw),
        total=float(clamp(raw, table.floor, table.ceiling)),
    )
