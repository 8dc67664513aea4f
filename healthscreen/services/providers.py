"""Speech-to-text and summarisation providers.

Routes and jobs depend only on these interfaces; the defaults are
deterministic and need no external service. A cloud-backed provider slots in
by implementing the same methods and being passed to ``create_app``.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Protocol, Tuple

from healthscreen.ml.risk.config import SYMPTOM_KEYWORDS
from healthscreen.ml.risk.features import extract_text_features


class ProviderError(RuntimeError):
    """An external provider could not produce a result."""


class Transcriber(Protocol):
    def transcribe(self, audio: bytes, encoding: str, hint: Optional[str] = None) -> str:
        ...


class Summarizer(Protocol):
    def summarize(self, transcript: str) -> Dict[str, Any]:
        ...


class TranscriptTranscriber:
    """Returns the transcript the client sent along with the recording."""

    def transcribe(self, audio: bytes, encoding: str, hint: Optional[str] = None) -> str:
        return (hint or "").strip()


COMPLAINT_NAMES = {
    "fatigue": "Fatigue",
    "polyuria": "Frequent urination",
    "polydipsia": "Increased thirst",
    "weightLoss": "Unexplained weight loss",
    "blurredVision": "Blurred vision",
    "numbness": "Numbness or tingling",
}

TEST_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("fasting blood glucose", "Fasting blood glucose"),
    ("hba1c", "HbA1c levels"),
    ("a1c", "HbA1c levels"),
    ("glucose tolerance", "Oral glucose tolerance test"),
    ("blood work", "Blood work"),
    ("blood test", "Blood work"),
    ("cholesterol", "Lipid panel"),
    ("blood pressure", "Blood pressure check"),
)

ADVICE_PHRASES = (
    "reduce your sugar intake",
    "reduce sugar",
    "increase physical activity",
    "exercise more",
    "lose weight",
    "drink more water",
    "take your medication",
    "monitor your blood sugar",
)

_SENTENCE = re.compile(r"(?<=[.!?])\s+")
_FOLLOW_UP = ("call you", "follow up", "follow-up", "come back", "next appointment", "results")


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for it in items:
        if it not in seen:
            seen.add(it)
            out.append(it)
    return out


class KeywordSummarizer:
    """Conversation summary built from keyword matches in the transcript."""

    def summarize(self, transcript: str) -> Dict[str, Any]:
        if not transcript or not transcript.strip():
            raise ProviderError("nothing to summarize: transcript is empty")

        lower = transcript.lower()
        feats = extract_text_features(transcript)
        complaints = [COMPLAINT_NAMES[k] for k in SYMPTOM_KEYWORDS if feats.get(k)]
        tests = _dedupe([name for kw, name in TEST_KEYWORDS if kw in lower])
        recs = [p.capitalize() for p in ADVICE_PHRASES if p in lower]

        sentences = [s.strip() for s in _SENTENCE.split(transcript) if s.strip()]
        follow_up = next((s for s in sentences if any(k in s.lower() for k in _FOLLOW_UP)), None)

        return {
            "mainComplaints": complaints,
            "recommendedTests": tests,
            "recommendations": recs,
            "followUp": follow_up,
            "mentionsDiabetes": "diabetes" in lower,
        }
