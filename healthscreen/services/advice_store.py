from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from healthscreen.db.models import DoctorAdvice
from healthscreen.ml.risk.pipeline import run_text_pipeline
from healthscreen.services.analysis_store import NotFound, iso
from healthscreen.services.result_schema import SCHEMA_VERSION, normalize_result
from healthscreen.utils.time import normalize_to_utc_iso

logger = logging.getLogger(__name__)


def advice_to_dict(row: DoctorAdvice) -> Dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "doctor_name": row.doctor_name,
        "specialization": row.specialization,
        "advice": row.advice,
        "visit_date": row.visit_date,
        "notes": row.notes,
        "evaluation": normalize_result(row.evaluation, row.schema_version),
        "created_at": iso(row.created_at),
        "updated_at": iso(row.updated_at),
    }


def evaluate_advice(advice: str) -> Dict[str, Any]:
    """Screen the advice text with the symptom/risk-factor pipeline."""
    return run_text_pipeline(advice).to_payload()


def create_advice(
    db: Session,
    *,
    user_id: str,
    advice: str,
    doctor_name: Optional[str] = None,
    specialization: Optional[str] = None,
    visit_date: Optional[str] = None,
    notes: Optional[str] = None,
) -> DoctorAdvice:
    evaluation = evaluate_advice(advice)
    row = DoctorAdvice(
        user_id=user_id,
        doctor_name=doctor_name,
        specialization=specialization,
        advice=advice,
        visit_date=normalize_to_utc_iso(visit_date),
        notes=notes,
        evaluation=evaluation,
        schema_version=SCHEMA_VERSION,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("doctor advice %s stored for user %s (label=%s)", row.id, user_id, evaluation["label"])
    return row


def get_advice_row(db: Session, advice_id: str) -> DoctorAdvice:
    row = db.get(DoctorAdvice, advice_id)
    if row is None:
        raise NotFound(f"doctor advice {advice_id} not found")
    return row


def update_advice(db: Session, row: DoctorAdvice, changes: Dict[str, Any]) -> DoctorAdvice:
    """Apply non-empty changes; a changed advice text is evaluated again."""
    for field in ("doctor_name", "specialization"):
        if changes.get(field):
            setattr(row, field, changes[field])
    if changes.get("notes") is not None:
        row.notes = changes["notes"]
    if changes.get("visit_date"):
        row.visit_date = normalize_to_utc_iso(changes["visit_date"])

    new_advice = changes.get("advice")
    if new_advice and new_advice != row.advice:
        row.advice = new_advice
        row.evaluation = evaluate_advice(new_advice)
        row.schema_version = SCHEMA_VERSION

    db.commit()
    db.refresh(row)
    return row


def delete_advice(db: Session, row: DoctorAdvice) -> None:
    db.delete(row)
    db.commit()


def list_advice(
    db: Session,
    user_id: str,
    *,
    doctor_name: Optional[str] = None,
    specialization: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Dict[str, Any]], int]:
    q = db.query(DoctorAdvice).filter(DoctorAdvice.user_id == user_id)
    if doctor_name:
        q = q.filter(DoctorAdvice.doctor_name == doctor_name)
    if specialization:
        q = q.filter(DoctorAdvice.specialization == specialization)
    total = q.count()
    rows = q.order_by(DoctorAdvice.visit_date.desc()).offset((page - 1) * limit).limit(limit).all()
    return [advice_to_dict(r) for r in rows], total


def list_doctors(db: Session, user_id: str) -> List[Dict[str, Any]]:
    """Distinct doctors the user has advice from, with their latest visit."""
    rows = (
        db.query(DoctorAdvice)
        .filter(DoctorAdvice.user_id == user_id, DoctorAdvice.doctor_name.isnot(None))
        .order_by(DoctorAdvice.visit_date.asc())
        .all()
    )
    doctors: Dict[str, Dict[str, Any]] = {}
    for r in rows:
        doctors[r.doctor_name] = {
            "name": r.doctor_name,
            "specialization": r.specialization,
            "last_visit": r.visit_date,
        }
    return list(doctors.values())
