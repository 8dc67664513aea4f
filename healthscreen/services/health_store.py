from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from sqlalchemy.orm import Session

from healthscreen.db.models import HealthRecord
from healthscreen.services.analysis_store import NotFound, iso
from healthscreen.utils.time import normalize_range_end, normalize_to_utc_iso


def record_to_dict(row: HealthRecord) -> Dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "record_type": row.record_type,
        "value": row.value,
        "unit": row.unit,
        "notes": row.notes,
        "record_date": row.record_date,
        "created_at": iso(row.created_at),
    }


def add_record(
    db: Session,
    *,
    user_id: str,
    record_type: str,
    value: float,
    unit: Optional[str] = None,
    notes: Optional[str] = None,
    record_date: Optional[str] = None,
) -> HealthRecord:
    row = HealthRecord(
        user_id=user_id,
        record_type=record_type,
        value=float(value),
        unit=unit,
        notes=notes,
        record_date=normalize_to_utc_iso(record_date),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_record_row(db: Session, record_id: str) -> HealthRecord:
    row = db.get(HealthRecord, record_id)
    if row is None:
        raise NotFound(f"health record {record_id} not found")
    return row


def update_record(db: Session, row: HealthRecord, changes: Dict[str, Any]) -> HealthRecord:
    if changes.get("value") is not None:
        row.value = float(changes["value"])
    if changes.get("unit"):
        row.unit = changes["unit"]
    if changes.get("notes") is not None:
        row.notes = changes["notes"]
    if changes.get("record_date"):
        row.record_date = normalize_to_utc_iso(changes["record_date"])
    db.commit()
    db.refresh(row)
    return row


def delete_record(db: Session, row: HealthRecord) -> None:
    db.delete(row)
    db.commit()


def _filtered(
    db: Session,
    user_id: str,
    record_type: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
):
    q = db.query(HealthRecord).filter(HealthRecord.user_id == user_id)
    if record_type:
        q = q.filter(HealthRecord.record_type == record_type)
    if start_date:
        q = q.filter(HealthRecord.record_date >= normalize_to_utc_iso(start_date))
    if end_date:
        q = q.filter(HealthRecord.record_date <= normalize_range_end(end_date))
    return q


def list_records(
    db: Session,
    user_id: str,
    *,
    record_type: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[List[Dict[str, Any]], int]:
    q = _filtered(db, user_id, record_type, start_date, end_date)
    total = q.count()
    rows = q.order_by(HealthRecord.record_date.desc()).offset((page - 1) * limit).limit(limit).all()
    return [record_to_dict(r) for r in rows], total


def record_stats(
    db: Session,
    user_id: str,
    record_type: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> Dict[str, Any]:
    """Count, min, max, mean and most recent value for one record type."""
    rows = (
        _filtered(db, user_id, record_type, start_date, end_date)
        .order_by(HealthRecord.record_date.asc())
        .all()
    )
    if not rows:
        return {"record_type": record_type, "count": 0, "min": None, "max": None, "mean": None, "latest": None}

    values = np.array([r.value for r in rows], dtype=float)
    latest = rows[-1]
    return {
        "record_type": record_type,
        "count": int(values.size),
        "min": float(values.min()),
        "max": float(values.max()),
        "mean": round(float(values.mean()), 3),
        "latest": {"value": latest.value, "unit": latest.unit, "record_date": latest.record_date},
    }
