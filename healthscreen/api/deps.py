from __future__ import annotations

from typing import Iterator, Optional

from fastapi import Header, HTTPException, Query, Request
from sqlalchemy.orm import Session

from healthscreen.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def current_user(x_user_id: Optional[str] = Header(None)) -> str:
    """Identity asserted by the upstream gateway after it authenticated the caller."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def ensure_owner(owner_id: str, user_id: str, what: str) -> None:
    if owner_id != user_id:
        raise HTTPException(status_code=403, detail=f"Unauthorized access to {what}")


class PageParams:
    def __init__(self, page: int = Query(1, ge=1), limit: int = Query(10, ge=1)):
        self.page = page
        self.limit = limit

    def clamp(self, settings: Settings) -> "PageParams":
        self.limit = min(self.limit, settings.page_limit_max)
        return self
