from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from healthscreen.ml.risk.config import DEFAULT_SAMPLE_RATE_HZ

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at start-up and injected."""

    database_url: str = "sqlite:///./outputs/healthscreen.db"
    upload_dir: str = "outputs/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_audio_types: Tuple[str, ...] = (
        "audio/wav",
        "audio/x-wav",
        "audio/wave",
        "audio/l16",
        "audio/mpeg",
        "audio/mp3",
        "audio/webm",
    )
    sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ
    log_level: str = "INFO"
    log_file: Optional[str] = None
    page_limit_max: int = 100
    extra: Dict[str, Any] = field(default_factory=dict)


def _section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = cfg.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config section '{name}' must be a mapping")
    return value


def settings_from_dict(cfg: Dict[str, Any]) -> Settings:
    db = _section(cfg, "database")
    uploads = _section(cfg, "uploads")
    audio = _section(cfg, "audio")
    log = _section(cfg, "logging")
    api = _section(cfg, "api")
    defaults = Settings()

    known = {"database", "uploads", "audio", "logging", "api"}
    return Settings(
        database_url=db.get("url", defaults.database_url),
        upload_dir=uploads.get("dir", defaults.upload_dir),
        max_upload_bytes=int(uploads.get("max_bytes", defaults.max_upload_bytes)),
        allowed_audio_types=tuple(uploads.get("allowed_audio_types", defaults.allowed_audio_types)),
        sample_rate_hz=int(audio.get("sample_rate_hz", defaults.sample_rate_hz)),
        log_level=str(log.get("level", defaults.log_level)).upper(),
        log_file=log.get("file", defaults.log_file),
        page_limit_max=int(api.get("page_limit_max", defaults.page_limit_max)),
        extra={k: v for k, v in cfg.items() if k not in known},
    )


def load_settings(path: Optional[str] = None) -> Settings:
    """Read YAML config; ``HEALTHSCREEN_CONFIG`` picks the file, ``HEALTHSCREEN_DB_URL`` overrides the DB.

    A missing default config file yields built-in defaults; an explicitly
    requested file that does not exist is an error.
    """
    explicit = path or os.getenv("HEALTHSCREEN_CONFIG")
    cfg_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    cfg: Dict[str, Any] = {}
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    elif explicit:
        raise FileNotFoundError(f"{cfg_path} not found")

    settings = settings_from_dict(cfg)
    db_url = os.getenv("HEALTHSCREEN_DB_URL")
    if db_url:
        settings = Settings(**{**settings.__dict__, "database_url": db_url})
    return settings
