from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from healthscreen.api.deps import PageParams, current_user, ensure_owner, get_db, get_settings
from healthscreen.ml.risk.errors import ExtractionError
from healthscreen.ml.risk.pipeline import run_text_pipeline
from healthscreen.schemas.analysis import AnalysisHistory, AnalysisOut, TextScreeningRequest
from healthscreen.services import analysis_store
from healthscreen.settings import Settings


router = APIRouter(prefix="/screening", tags=["screening"])


@router.post("/analyze", response_model=AnalysisOut)
def analyze_text(
    req: TextScreeningRequest,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AnalysisOut:
    """Screen a free-text symptom description."""
    try:
        result = run_text_pipeline(req.text)
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=f"Invalid text: {e}")

    row = analysis_store.save_completed_analysis(
        db,
        user_id=user_id,
        kind="text",
        payload=result.to_payload(),
        source={"content_type": "text/plain", "size_bytes": len(req.text.encode("utf-8"))},
        transcription=req.text,
    )
    return AnalysisOut(**analysis_store.analysis_to_dict(row))


@router.get("/history", response_model=AnalysisHistory)
def text_history(
    params: PageParams = Depends(),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnalysisHistory:
    params.clamp(settings)
    items, total = analysis_store.list_analyses(db, user_id, kind="text", page=params.page, limit=params.limit)
    return AnalysisHistory(history=items, pagination=analysis_store.page_meta(params.page, params.limit, total))


@router.get("/analysis/{analysis_id}", response_model=AnalysisOut)
def get_text_analysis(
    analysis_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AnalysisOut:
    row = analysis_store.get_analysis_row(db, analysis_id)
    if row.kind != "text":
        raise HTTPException(status_code=404, detail="Screening analysis not found")
    ensure_owner(row.user_id, user_id, "screening analysis")
    return AnalysisOut(**analysis_store.analysis_to_dict(row))
