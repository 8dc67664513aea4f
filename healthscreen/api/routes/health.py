from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from healthscreen.api.deps import current_user, ensure_owner, get_db, get_settings
from healthscreen.schemas.health import (
    HealthRecordCreate,
    HealthRecordOut,
    HealthRecordPage,
    HealthRecordUpdate,
    HealthStats,
)
from healthscreen.services import health_store
from healthscreen.services.analysis_store import page_meta
from healthscreen.settings import Settings


router = APIRouter(prefix="/health", tags=["health-tracker"])


@router.post("/records", response_model=HealthRecordOut, status_code=201)
def add_record(
    req: HealthRecordCreate,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> HealthRecordOut:
    try:
        row = health_store.add_record(db, user_id=user_id, **req.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid record_date: {e}")
    return HealthRecordOut(**health_store.record_to_dict(row))


@router.get("/records", response_model=HealthRecordPage)
def list_records(
    record_type: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> HealthRecordPage:
    limit = min(limit, settings.page_limit_max)
    try:
        items, total = health_store.list_records(
            db,
            user_id,
            record_type=record_type,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date filter: {e}")
    return HealthRecordPage(records=items, pagination=page_meta(page, limit, total))


@router.get("/stats/{record_type}", response_model=HealthStats)
def stats(
    record_type: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> HealthStats:
    try:
        return HealthStats(**health_store.record_stats(db, user_id, record_type, start_date, end_date))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date filter: {e}")


@router.put("/records/{record_id}", response_model=HealthRecordOut)
def update_record(
    record_id: str,
    req: HealthRecordUpdate,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> HealthRecordOut:
    row = health_store.get_record_row(db, record_id)
    ensure_owner(row.user_id, user_id, "health record")
    try:
        row = health_store.update_record(db, row, req.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid record_date: {e}")
    return HealthRecordOut(**health_store.record_to_dict(row))


@router.delete("/records/{record_id}")
def delete_record(
    record_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    row = health_store.get_record_row(db, record_id)
    ensure_owner(row.user_id, user_id, "health record")
    health_store.delete_record(db, row)
    return {"status": "deleted", "id": record_id}
