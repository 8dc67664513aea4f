"""Feature extraction: raw input -> flat, immutable FeatureRecord."""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .acoustics import measure_voice
from .config import DEFAULT_SAMPLE_RATE_HZ, RISK_FACTOR_KEYWORDS, SYMPTOM_KEYWORDS, TEXT_FLAGS
from .errors import ExtractionError

FeatureRecord = Mapping[str, Any]

_AGE_RE = re.compile(r"\b(\d{1,3})[\s-]*(?:years?|yrs?)?[\s-]*old\b", re.IGNORECASE)


def freeze(values: Dict[str, Any]) -> FeatureRecord:
    return MappingProxyType(dict(values))


def decode_text(payload: Union[str, bytes, None]) -> str:
    """Accept text or UTF-8 bytes; refuse anything with nothing to analyse."""
    if payload is None:
        raise ExtractionError("no text supplied")
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = bytes(payload).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExtractionError(f"text is not valid UTF-8: {e}") from e
    if not isinstance(payload, str):
        raise ExtractionError(f"unsupported text payload of type {type(payload).__name__}")
    if not payload.strip():
        raise ExtractionError("text is empty")
    return payload


def extract_age(text: str) -> int:
    """First '<n> years old' phrase, 0 when the text does not mention one."""
    m = _AGE_RE.search(text)
    return int(m.group(1)) if m else 0


def _keyword_flags(text: str) -> Dict[str, bool]:
    lower = text.lower()
    flags: Dict[str, bool] = {}
    for concept, words in {**SYMPTOM_KEYWORDS, **RISK_FACTOR_KEYWORDS}.items():
        flags[concept] = any(w in lower for w in words)
    return flags


def empty_text_features() -> Dict[str, Any]:
    out: Dict[str, Any] = {flag: False for flag in TEXT_FLAGS}
    out["age"] = 0
    return out


def extract_text_features(text: Union[str, bytes]) -> FeatureRecord:
    """Symptom and risk-factor flags detected in free text.

    Concepts with no matching keyword default to False (and age to 0) so the
    scorer never has to branch on absence.
    """
    decoded = decode_text(text)
    values = empty_text_features()
    values.update(_keyword_flags(decoded))
    values["age"] = extract_age(decoded)
    return freeze(values)


def extract_voice_features(
    audio: bytes,
    encoding: str,
    transcript: Optional[str] = None,
    sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
) -> FeatureRecord:
    """Acoustic measurements of a recording, merged with transcript flags.

    Without a transcript every text flag is False.
    """
    values: Dict[str, Any] = dict(measure_voice(audio, encoding, sample_rate_hz=sample_rate_hz))
    if transcript and transcript.strip():
        values.update(extract_text_features(transcript))
    else:
        values.update(empty_text_features())
    return freeze(values)
