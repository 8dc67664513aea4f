from __future__ import annotations

import re
import time
from pathlib import Path

_SAFE = re.compile(r"[^A-Za-z0-9_.-]")


def save_upload(root: str, user_id: str, original_name: str, data: bytes, folder: str = "audio") -> str:
    """Write an upload to ``<root>/<folder>/<user>/<user>_<ms><ext>`` and return that path."""
    ext = Path(original_name or "").suffix.lower()
    user_dir = _SAFE.sub("_", user_id)
    filename = f"{user_dir}_{int(time.time() * 1000)}{_SAFE.sub('', ext)}"
    path = Path(root) / folder / user_dir / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return str(path)


def read_upload(file_path: str) -> bytes:
    if not file_path:
        raise FileNotFoundError("no stored file path on this document")
    return Path(file_path).read_bytes()


def delete_upload(file_path: str) -> None:
    if file_path:
        Path(file_path).unlink(missing_ok=True)
