"""Versioned shape of stored screening results.

Current (v2): {score, label, recommendations: [str], breakdown: {feature: float},
raw_score, features, model_version}.

Legacy (v1) documents used {riskPercentage | riskScore, riskLevel,
featureImportance (fractions of the total), recommendations: {general, specific}}.
They are migrated here, once, at read time so nothing downstream needs fallbacks.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

SCHEMA_VERSION = 2


def _legacy_recommendations(recs: Any) -> List[str]:
    if isinstance(recs, dict):
        return [str(r) for r in (recs.get("general") or [])] + [str(r) for r in (recs.get("specific") or [])]
    if isinstance(recs, list):
        return [str(r) for r in recs]
    return []


def _migrate_v1(doc: Dict[str, Any]) -> Dict[str, Any]:
    # v1 voice results nested the numbers under "prediction"
    pred = doc.get("prediction") if isinstance(doc.get("prediction"), dict) else doc
    score = pred.get("riskPercentage", pred.get("riskScore", 0.0))
    score = float(score or 0.0)

    # fractions of the total -> approximate per-feature points
    importance = pred.get("featureImportance") or {}
    breakdown = {str(k): float(v or 0.0) * score for k, v in importance.items()}

    return {
        "score": score,
        "label": str(pred.get("riskLevel") or "unknown"),
        "recommendations": _legacy_recommendations(doc.get("recommendations")),
        "breakdown": breakdown,
        "raw_score": score,
        "features": doc.get("features") or {},
        "model_version": doc.get("model_version", "legacy-v1"),
    }


def detect_version(doc: Dict[str, Any]) -> int:
    if "label" in doc and "score" in doc:
        return SCHEMA_VERSION
    return 1


def normalize_result(doc: Optional[Dict[str, Any]], version: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """Return ``doc`` in the current schema (``None`` passes through)."""
    if doc is None:
        return None
    v = version or detect_version(doc)
    if v >= SCHEMA_VERSION:
        return doc
    if v == 1:
        return _migrate_v1(doc)
    raise ValueError(f"unknown result schema version {v}")
