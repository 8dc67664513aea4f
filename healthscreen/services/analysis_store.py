from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from healthscreen.db.models import Analysis
from healthscreen.services.result_schema import SCHEMA_VERSION, normalize_result
from healthscreen.services.status import ANALYSIS, Status, check_transition
from healthscreen.utils.time import now_utc, parse_to_utc_aware

logger = logging.getLogger(__name__)


class NotFound(LookupError):
    pass


def iso(dt) -> Optional[str]:
    """Stored datetimes come back naive from SQLite; they are UTC."""
    return parse_to_utc_aware(dt).isoformat() if dt is not None else None


def page_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "totalItems": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def analysis_to_dict(row: Analysis) -> Dict[str, Any]:
    """JSON-only view of an analysis (no ORM instances, no datetime objects)."""
    return {
        "id": row.id,
        "user_id": row.user_id,
        "kind": row.kind,
        "status": row.status,
        "source": row.source or {},
        "transcription": row.transcription,
        "result": normalize_result(row.result, row.schema_version),
        "error": row.error,
        "created_at": iso(row.created_at),
        "updated_at": iso(row.updated_at),
        "completed_at": iso(row.completed_at),
    }


def create_analysis(
    db: Session,
    *,
    user_id: str,
    kind: str,
    source: Optional[Dict[str, Any]] = None,
    status: Status = Status.UPLOADED,
    transcription: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
) -> Analysis:
    row = Analysis(
        user_id=user_id,
        kind=kind,
        status=status.value,
        source=source or {},
        transcription=transcription,
    )
    if result is not None:
        _attach_result(row, result)
    if status is Status.COMPLETED:
        row.completed_at = now_utc()
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("analysis %s created (user=%s kind=%s status=%s)", row.id, user_id, kind, status.value)
    return row


def save_completed_analysis(
    db: Session,
    *,
    user_id: str,
    kind: str,
    payload: Dict[str, Any],
    source: Optional[Dict[str, Any]] = None,
    transcription: Optional[str] = None,
) -> Analysis:
    """Synchronous runs are written once, already completed."""
    return create_analysis(
        db,
        user_id=user_id,
        kind=kind,
        source=source,
        status=Status.COMPLETED,
        transcription=transcription,
        result=payload,
    )


def _attach_result(row: Analysis, payload: Dict[str, Any]) -> None:
    row.result = payload
    row.schema_version = SCHEMA_VERSION
    row.score = payload.get("score")
    row.label = payload.get("label")


def get_analysis_row(db: Session, analysis_id: str) -> Analysis:
    row = db.get(Analysis, analysis_id)
    if row is None:
        raise NotFound(f"analysis {analysis_id} not found")
    return row


def set_status(
    db: Session,
    analysis_id: str,
    target: Status,
    *,
    transcription: Optional[str] = None,
    result: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> Analysis:
    """Move an analysis one step along the status graph, storing step output."""
    row = get_analysis_row(db, analysis_id)
    row.status = check_transition(row.status, target, ANALYSIS).value
    if transcription is not None:
        row.transcription = transcription
    if result is not None:
        _attach_result(row, result)
    if error is not None:
        row.error = error
    if target is Status.COMPLETED:
        row.completed_at = now_utc()
    db.commit()
    db.refresh(row)
    logger.debug("analysis %s -> %s", analysis_id, target.value)
    return row


def list_analyses(
    db: Session,
    user_id: str,
    *,
    kind: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Dict[str, Any]], int]:
    """Newest first, one page at a time; returns (items, total count)."""
    q = db.query(Analysis).filter(Analysis.user_id == user_id)
    if kind:
        q = q.filter(Analysis.kind == kind)
    total = q.count()
    rows = (
        q.order_by(Analysis.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [analysis_to_dict(r) for r in rows], total
