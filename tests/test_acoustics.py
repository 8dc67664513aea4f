import numpy as np
import pytest

from healthscreen.ml.risk.acoustics import decode_audio, measure_voice
from healthscreen.ml.risk.config import VOICE_WEIGHTS
from healthscreen.ml.risk.errors import ExtractionError
from healthscreen.ml.risk.features import extract_voice_features
from healthscreen.ml.risk.pipeline import run_voice_pipeline

from tests.conftest import make_irregular_wav, make_wav


def test_steady_sine_measurements(wav_bytes):
    m = measure_voice(wav_bytes, "audio/wav", sample_rate_hz=16000)
    assert m["pitch.mean"] == pytest.approx(200.0, rel=0.02)
    assert m["pitch.variation"] < 0.01
    assert m["jitter"] < 0.005
    assert m["shimmer"] < 0.02
    assert m["spectralFeatures.flux"] == pytest.approx(0.0, abs=1e-3)
    assert m["energy"] == pytest.approx(81.3, abs=0.5)
    assert 150.0 < m["spectralFeatures.centroid"] < 400.0
    assert m["spectralFeatures.rolloff"] >= m["spectralFeatures.centroid"] * 0.5


def test_irregular_voice_crosses_perturbation_thresholds(wav_bytes):
    steady = measure_voice(wav_bytes, "audio/wav", sample_rate_hz=16000)
    m = measure_voice(make_irregular_wav(), "audio/wav", sample_rate_hz=16000)
    assert m["jitter"] > 0.01
    assert m["shimmer"] > 0.08
    assert m["jitter"] > steady["jitter"]
    assert m["shimmer"] > steady["shimmer"]
    assert m["spectralFeatures.flux"] > steady["spectralFeatures.flux"]
    assert 180.0 < m["pitch.mean"] < 225.0


def test_irregular_voice_scores_above_the_floor():
    result = run_voice_pipeline(make_irregular_wav(), "audio/wav")
    assert result.breakdown.contributions["jitter"] > 0.0
    assert result.breakdown.contributions["shimmer"] > 0.0
    assert result.score > VOICE_WEIGHTS.floor
    assert result.label != "low"


def test_silence_measures_zero():
    m = measure_voice(make_wav(silent=True), "audio/wav", sample_rate_hz=16000)
    assert m["pitch.mean"] == 0.0
    assert m["energy"] == 0.0
    assert m["jitter"] == 0.0
    assert m["shimmer"] == 0.0
    assert m["spectralFeatures.flux"] == 0.0


def test_stereo_is_mixed_down():
    mono = measure_voice(make_wav(), "audio/wav", sample_rate_hz=16000)
    stereo = measure_voice(make_wav(channels=2), "audio/wav", sample_rate_hz=16000)
    assert stereo["pitch.mean"] == pytest.approx(mono["pitch.mean"])
    assert stereo["energy"] == pytest.approx(mono["energy"])


def test_raw_linear16_uses_given_rate():
    t = np.arange(8000) / 8000
    pcm = np.round(0.5 * np.sin(2 * np.pi * 160 * t) * 32767).astype("<i2").tobytes()
    m = measure_voice(pcm, "LINEAR16", sample_rate_hz=8000)
    assert m["pitch.mean"] == pytest.approx(160.0, rel=0.02)


def test_content_type_parameters_are_ignored(wav_bytes):
    samples, rate = decode_audio(wav_bytes, "audio/wav; codecs=1", 16000)
    assert rate == 16000
    assert len(samples) == 8000


@pytest.mark.parametrize(
    "audio,encoding",
    [
        (b"", "audio/wav"),
        (b"not a wav file at all", "audio/wav"),
        (b"\x00\x01" * 100, "audio/mpeg"),
        (b"\x1a\x45\xdf\xa3" + b"\x00" * 60, "audio/webm"),
        (b"\x00", "audio/l16"),
        (b"\x00\x01" * 100, "audio/ogg"),
        # valid headers whose rate is too low for the pitch band
        (make_wav(freq_hz=5.0, seconds=20.0, rate=20), "audio/wav"),
        (make_wav(freq_hz=100.0, seconds=1.0, rate=400), "audio/wav"),
    ],
)
def test_undecodable_audio_raises(audio, encoding):
    with pytest.raises(ExtractionError):
        measure_voice(audio, encoding, sample_rate_hz=16000)


def test_raw_pcm_needs_a_positive_rate():
    with pytest.raises(ExtractionError, match="sample rate"):
        measure_voice(b"\x00\x01" * 800, "audio/l16", sample_rate_hz=0)


def test_audio_shorter_than_one_frame_raises():
    with pytest.raises(ExtractionError, match="too short"):
        measure_voice(make_wav(seconds=0.01), "audio/wav", sample_rate_hz=16000)


def test_transcript_flags_join_the_voice_record(wav_bytes):
    rec = extract_voice_features(wav_bytes, "audio/wav", transcript="I'm overweight")
    assert rec["overweight"] is True
    assert rec["familyHistory"] is False
    assert "jitter" in rec


def test_steady_tone_scores_the_floor(wav_bytes):
    result = run_voice_pipeline(wav_bytes, "audio/wav")
    assert result.score == 5.0
    assert result.label == "low"
