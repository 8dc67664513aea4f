from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from healthscreen.api.deps import PageParams, current_user, ensure_owner, get_db, get_settings
from healthscreen.ml.risk.errors import ExtractionError
from healthscreen.schemas.advice import AdviceCreate, AdviceHistory, AdviceOut, AdviceUpdate, DoctorOut
from healthscreen.services import advice_store
from healthscreen.services.analysis_store import page_meta
from healthscreen.settings import Settings


router = APIRouter(prefix="/doctor", tags=["doctor-advice"])


@router.post("/advice", response_model=AdviceOut, status_code=201)
def add_advice(
    req: AdviceCreate,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AdviceOut:
    """Store a doctor's advice together with its screening evaluation."""
    try:
        row = advice_store.create_advice(db, user_id=user_id, **req.model_dump())
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=f"Invalid advice text: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid visit_date: {e}")
    return AdviceOut(**advice_store.advice_to_dict(row))


@router.get("/advice", response_model=AdviceHistory)
def advice_history(
    doctor_name: Optional[str] = None,
    specialization: Optional[str] = None,
    params: PageParams = Depends(),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AdviceHistory:
    params.clamp(settings)
    items, total = advice_store.list_advice(
        db,
        user_id,
        doctor_name=doctor_name,
        specialization=specialization,
        page=params.page,
        limit=params.limit,
    )
    return AdviceHistory(advice_history=items, pagination=page_meta(params.page, params.limit, total))


@router.get("/advice/{advice_id}", response_model=AdviceOut)
def get_advice(
    advice_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AdviceOut:
    row = advice_store.get_advice_row(db, advice_id)
    ensure_owner(row.user_id, user_id, "doctor advice")
    return AdviceOut(**advice_store.advice_to_dict(row))


@router.put("/advice/{advice_id}", response_model=AdviceOut)
def update_advice(
    advice_id: str,
    req: AdviceUpdate,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AdviceOut:
    row = advice_store.get_advice_row(db, advice_id)
    ensure_owner(row.user_id, user_id, "doctor advice")
    try:
        row = advice_store.update_advice(db, row, req.model_dump(exclude_unset=True))
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=f"Invalid advice text: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid visit_date: {e}")
    return AdviceOut(**advice_store.advice_to_dict(row))


@router.delete("/advice/{advice_id}")
def delete_advice(
    advice_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    row = advice_store.get_advice_row(db, advice_id)
    ensure_owner(row.user_id, user_id, "doctor advice")
    advice_store.delete_advice(db, row)
    return {"status": "deleted", "id": advice_id}


@router.get("/doctors", response_model=List[DoctorOut])
def doctors(
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> List[DoctorOut]:
    return [DoctorOut(**d) for d in advice_store.list_doctors(db, user_id)]
