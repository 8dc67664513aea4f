from __future__ import annotations

import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from healthscreen.api.main import create_app
from healthscreen.settings import Settings


def _to_wav(signal: np.ndarray, rate: int) -> bytes:
    buf = io.BytesIO()
    sf.write(buf, signal, rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def make_wav(
    freq_hz: float = 200.0,
    seconds: float = 0.5,
    amplitude: float = 0.5,
    rate: int = 16000,
    channels: int = 1,
    silent: bool = False,
) -> bytes:
    t = np.arange(int(rate * seconds)) / rate
    signal = np.zeros_like(t) if silent else amplitude * np.sin(2 * np.pi * freq_hz * t)
    if channels > 1:
        signal = np.repeat(signal[:, None], channels, axis=1)
    return _to_wav(signal, rate)


def make_irregular_wav(seconds: float = 1.0, rate: int = 16000, seed: int = 7) -> bytes:
    """Whole sine cycles whose period (~186-216 Hz) and peak (0.4-0.6) change every cycle."""
    rng = np.random.default_rng(seed)
    cycles = []
    total = 0
    while total < rate * seconds:
        period = int(rng.integers(74, 87))
        peak = rng.uniform(0.4, 0.6)
        cycles.append(peak * np.sin(2 * np.pi * np.arange(period) / period))
        total += period
    return _to_wav(np.concatenate(cycles), rate)


@pytest.fixture
def wav_bytes() -> bytes:
    return make_wav()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=1024 * 1024,
        page_limit_max=50,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def alice() -> dict:
    return {"X-User-Id": "alice"}


@pytest.fixture
def bob() -> dict:
    return {"X-User-Id": "bob"}
