"""Screening pipelines: extract -> score -> classify -> recommend."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from . import config
from .classifier import RiskBands, classify
from .features import FeatureRecord, extract_text_features, extract_voice_features
from .recommendations import build_recommendations
from .scorer import ScoreBreakdown, WeightTable, score_features

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSpec:
    kind: str
    weights: WeightTable
    bands: RiskBands
    advice: Mapping[str, Sequence[str]]
    rules: Tuple[Tuple[str, str], ...]
    model_version: str


VOICE_PIPELINE = PipelineSpec(
    kind="voice",
    weights=config.VOICE_WEIGHTS,
    bands=config.VOICE_BANDS,
    advice=config.VOICE_ADVICE,
    rules=config.VOICE_RULES,
    model_version=config.VOICE_MODEL_VERSION,
)

TEXT_PIPELINE = PipelineSpec(
    kind="text",
    weights=config.TEXT_WEIGHTS,
    bands=config.TEXT_BANDS,
    advice=config.TEXT_ADVICE,
    rules=config.TEXT_RULES,
    model_version=config.TEXT_MODEL_VERSION,
)


@dataclass(frozen=True)
class PipelineResult:
    kind: str
    features: FeatureRecord
    breakdown: ScoreBreakdown
    label: str
    recommendations: List[str]
    model_version: str

    @property
    def score(self) -> float:
        return self.breakdown.total

    def to_payload(self) -> Dict[str, Any]:
        """JSON-friendly result: score, label, recommendations, breakdown (+ provenance)."""
        return {
            "score": self.breakdown.total,
            "label": self.label,
            "recommendations": list(self.recommendations),
            "breakdown": self.breakdown.as_dict(),
            "raw_score": self.breakdown.raw,
            "features": dict(self.features),
            "model_version": self.model_version,
        }


def run_pipeline(record: FeatureRecord, spec: PipelineSpec) -> PipelineResult:
    breakdown = score_features(record, spec.weights)
    label = classify(breakdown.total, spec.bands)
    recs = build_recommendations(label, record, spec.advice, spec.rules)
    logger.info(
        "%s screening: raw=%.3f total=%.3f label=%s",
        spec.kind,
        breakdown.raw,
        breakdown.total,
        label,
    )
    return PipelineResult(
        kind=spec.kind,
        features=record,
        breakdown=breakdown,
        label=label,
        recommendations=recs,
        model_version=spec.model_version,
    )


def run_voice_pipeline(
    audio: bytes,
    encoding: str,
    transcript: Optional[str] = None,
    sample_rate_hz: int = config.DEFAULT_SAMPLE_RATE_HZ,
) -> PipelineResult:
    record = extract_voice_features(audio, encoding, transcript=transcript, sample_rate_hz=sample_rate_hz)
    return run_pipeline(record, VOICE_PIPELINE)


def run_text_pipeline(text: Union[str, bytes]) -> PipelineResult:
    return run_pipeline(extract_text_features(text), TEXT_PIPELINE)
