"""Acoustic voice measurements (jitter, shimmer, pitch, energy, spectral shape).

Decoding goes through soundfile (WAV, raw LINEAR16) or librosa (MP3, WebM),
pitch through librosa's pYIN, cycle-to-cycle perturbation through Praat via
parselmouth, and energy and spectral shape through librosa's feature module.
"""
from __future__ import annotations

import io
import math
import os
import tempfile
from typing import Dict, Tuple

import librosa
import numpy as np
import parselmouth
import soundfile as sf
from parselmouth.praat import call

from .config import (
    COMPRESSED_ENCODINGS,
    FRAME_MS,
    HOP_MS,
    MAX_AMPLITUDE_FACTOR,
    MAX_PERIOD_FACTOR,
    PCM_ENCODINGS,
    PERIOD_CEILING_S,
    PERIOD_FLOOR_S,
    PITCH_MAX_HZ,
    PITCH_MIN_HZ,
    ROLLOFF_FRACTION,
    WAV_ENCODINGS,
)
from .errors import ExtractionError

FULL_SCALE = 32768.0


def _normalize_encoding(encoding: str) -> str:
    return (encoding or "").split(";")[0].strip().lower()


def _load_compressed(audio: bytes, suffix: str) -> Tuple[np.ndarray, int]:
    # audioread needs a real path to hand to ffmpeg
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
        f.write(audio)
        tmp = f.name
    try:
        y, rate = librosa.load(tmp, sr=None, mono=True)
    except Exception as e:
        raise ExtractionError(f"unreadable {suffix.lstrip('.')} payload: {e}") from e
    finally:
        os.unlink(tmp)
    return y.astype(np.float64), int(rate)


def decode_audio(audio: bytes, encoding: str, sample_rate_hz: int) -> Tuple[np.ndarray, int]:
    """Decode a recording to mono floats in [-1, 1) and its sample rate.

    WAV carries its own rate; raw LINEAR16 is read at ``sample_rate_hz``;
    MP3 and WebM are decoded at their native rate.
    """
    if not audio:
        raise ExtractionError("audio payload is empty")

    enc = _normalize_encoding(encoding)
    if enc in WAV_ENCODINGS or enc in PCM_ENCODINGS:
        if enc in PCM_ENCODINGS and int(sample_rate_hz) <= 0:
            raise ExtractionError(f"invalid sample rate {sample_rate_hz} for raw PCM")
        raw = {} if enc in WAV_ENCODINGS else {
            "samplerate": int(sample_rate_hz),
            "channels": 1,
            "format": "RAW",
            "subtype": "PCM_16",
            "endian": "LITTLE",
        }
        try:
            data, rate = sf.read(io.BytesIO(audio), dtype="float64", always_2d=True, **raw)
        except RuntimeError as e:
            kind = "WAV" if enc in WAV_ENCODINGS else "raw PCM"
            raise ExtractionError(f"unreadable {kind} payload: {e}") from e
        samples = data.mean(axis=1)
    elif enc in COMPRESSED_ENCODINGS:
        samples, rate = _load_compressed(audio, COMPRESSED_ENCODINGS[enc])
    else:
        raise ExtractionError(f"unsupported audio encoding '{encoding}'")

    if len(samples) == 0 or rate <= 0:
        raise ExtractionError("audio payload holds no complete sample")
    return samples, int(rate)


def _defined(value: float) -> float:
    """Praat reports 'undefined' (no voiced periods) as NaN."""
    return 0.0 if value is None or math.isnan(value) else float(value)


def perturbation(samples: np.ndarray, rate: int) -> Tuple[float, float]:
    """Local jitter and shimmer (fractions, not percent) from Praat's periodic point process."""
    snd = parselmouth.Sound(samples.astype(np.float64), sampling_frequency=float(rate))
    try:
        points = call(snd, "To PointProcess (periodic, cc)", PITCH_MIN_HZ, PITCH_MAX_HZ)
        jitter = call(points, "Get jitter (local)", 0, 0, PERIOD_FLOOR_S, PERIOD_CEILING_S, MAX_PERIOD_FACTOR)
        shimmer = call(
            [snd, points],
            "Get shimmer (local)",
            0,
            0,
            PERIOD_FLOOR_S,
            PERIOD_CEILING_S,
            MAX_PERIOD_FACTOR,
            MAX_AMPLITUDE_FACTOR,
        )
    except parselmouth.PraatError as e:
        raise ExtractionError(f"voice perturbation analysis failed: {e}") from e
    return _defined(jitter), _defined(shimmer)


def _pitch_track(samples: np.ndarray, rate: int, frame: int, hop: int) -> np.ndarray:
    f0, voiced, _ = librosa.pyin(
        samples,
        fmin=PITCH_MIN_HZ,
        fmax=PITCH_MAX_HZ,
        sr=rate,
        frame_length=frame,
        hop_length=hop,
    )
    return f0[voiced & ~np.isnan(f0)]


def _spectral_shape(samples: np.ndarray, rate: int, frame: int, hop: int) -> Dict[str, float]:
    mags = np.abs(librosa.stft(samples, n_fft=frame, hop_length=hop, center=False))
    active = mags.sum(axis=0) > 1e-12
    if not active.any():
        return {"spectralFeatures.flux": 0.0, "spectralFeatures.centroid": 0.0, "spectralFeatures.rolloff": 0.0}

    centroid = librosa.feature.spectral_centroid(S=mags[:, active], sr=rate, n_fft=frame)
    rolloff = librosa.feature.spectral_rolloff(
        S=mags[:, active], sr=rate, n_fft=frame, roll_percent=ROLLOFF_FRACTION
    )

    # flux between unit-norm spectra, so loudness does not move it; bounded by sqrt(2)
    norms = np.linalg.norm(mags, axis=0, keepdims=True)
    unit = np.divide(mags, norms, out=np.zeros_like(mags), where=norms > 1e-12)
    if unit.shape[1] < 2:
        flux = 0.0
    else:
        env = librosa.onset.onset_strength(
            S=unit, sr=rate, lag=1, max_size=1, center=False, aggregate=np.linalg.norm
        )
        # leading `lag` entries are padding
        flux = float(np.mean(env[1:]))

    return {
        "spectralFeatures.flux": flux,
        "spectralFeatures.centroid": float(np.mean(centroid)),
        "spectralFeatures.rolloff": float(np.mean(rolloff)),
    }


def measure_voice(audio: bytes, encoding: str, sample_rate_hz: int) -> Dict[str, float]:
    """Decode a recording and measure the voice signals the scorer consumes.

    Returns a flat dict with dotted names for grouped measurements:
    jitter, shimmer, pitch.{mean,std,range,variation}, energy (dB re 1/32768),
    spectralFeatures.{flux,centroid,rolloff}. Silence yields zeros, not an error.
    """
    samples, rate = decode_audio(audio, encoding, sample_rate_hz)
    if rate < 2 * PITCH_MAX_HZ:
        raise ExtractionError(
            f"sample rate of {rate} Hz cannot resolve pitch up to {PITCH_MAX_HZ:g} Hz"
        )
    frame = int(rate * FRAME_MS / 1000)
    hop = max(1, int(rate * HOP_MS / 1000))
    if frame < 2 or len(samples) < frame:
        raise ExtractionError(
            f"audio too short: {len(samples)} samples, need at least {frame} for one analysis frame"
        )

    pitches = _pitch_track(samples, rate, frame, hop)
    if len(pitches):
        pitch_mean = float(pitches.mean())
        pitch_std = float(pitches.std())
        pitch_range = float(pitches.max() - pitches.min())
    else:
        pitch_mean = pitch_std = pitch_range = 0.0

    jitter, shimmer = perturbation(samples, rate) if len(pitches) else (0.0, 0.0)

    rms = float(librosa.feature.rms(y=samples, frame_length=frame, hop_length=hop, center=False).mean())
    energy = max(0.0, 20.0 * np.log10(rms * FULL_SCALE)) if rms > 0 else 0.0

    out = {
        "jitter": jitter,
        "shimmer": shimmer,
        "pitch.mean": pitch_mean,
        "pitch.std": pitch_std,
        "pitch.range": pitch_range,
        "pitch.variation": pitch_std / pitch_mean if pitch_mean > 0 else 0.0,
        "energy": float(energy),
    }
    out.update(_spectral_shape(samples, rate, frame, hop))
    return out
