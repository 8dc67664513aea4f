from __future__ import annotations

from typing import Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from healthscreen.api.deps import PageParams, current_user, ensure_owner, get_db, get_settings
from healthscreen.ml.risk.errors import ExtractionError
from healthscreen.ml.risk.pipeline import run_voice_pipeline
from healthscreen.schemas.analysis import AnalysisHistory, AnalysisOut, JobAccepted
from healthscreen.services import analysis_store
from healthscreen.services.jobs import process_voice_analysis
from healthscreen.services.status import Status
from healthscreen.services.uploads import save_upload
from healthscreen.settings import Settings


router = APIRouter(prefix="/voice", tags=["voice"])


async def read_audio_upload(audio: UploadFile, settings: Settings) -> Tuple[str, bytes]:
    content_type = (audio.content_type or "").split(";")[0].strip().lower()
    if content_type not in settings.allowed_audio_types:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type '{content_type}'. Allowed: {', '.join(settings.allowed_audio_types)}",
        )
    data = await audio.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {settings.max_upload_bytes} bytes")
    if not data:
        raise HTTPException(status_code=400, detail="No audio data uploaded")
    return content_type, data


def _source(audio: UploadFile, content_type: str, file_path: str, size: int) -> dict:
    return {
        "filename": audio.filename,
        "content_type": content_type,
        "file_path": file_path,
        "size_bytes": size,
    }


@router.post("/analyze", response_model=AnalysisOut)
async def analyze_voice(
    audio: UploadFile = File(...),
    transcript: Optional[str] = Form(None),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnalysisOut:
    """Analyse a recording synchronously and store the completed result."""
    content_type, data = await read_audio_upload(audio, settings)

    try:
        result = run_voice_pipeline(
            data, content_type, transcript=transcript, sample_rate_hz=settings.sample_rate_hz
        )
    except ExtractionError as e:
        raise HTTPException(status_code=400, detail=f"Invalid audio: {e}")

    file_path = save_upload(settings.upload_dir, user_id, audio.filename or "", data)
    row = analysis_store.save_completed_analysis(
        db,
        user_id=user_id,
        kind="voice",
        payload=result.to_payload(),
        source=_source(audio, content_type, file_path, len(data)),
        transcription=transcript,
    )
    return AnalysisOut(**analysis_store.analysis_to_dict(row))


@router.post("/jobs", response_model=JobAccepted, status_code=202)
async def submit_voice_job(
    request: Request,
    background: BackgroundTasks,
    audio: UploadFile = File(...),
    transcript: Optional[str] = Form(None),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JobAccepted:
    """Store the recording as 'uploaded' and process it after the response is sent."""
    content_type, data = await read_audio_upload(audio, settings)
    file_path = save_upload(settings.upload_dir, user_id, audio.filename or "", data)
    row = analysis_store.create_analysis(
        db,
        user_id=user_id,
        kind="voice",
        source=_source(audio, content_type, file_path, len(data)),
    )
    background.add_task(
        process_voice_analysis,
        request.app.state.session_factory,
        row.id,
        request.app.state.transcriber,
        settings.sample_rate_hz,
        transcript,
    )
    return JobAccepted(id=row.id, status=Status.UPLOADED.value)


@router.get("/history", response_model=AnalysisHistory)
def voice_history(
    params: PageParams = Depends(),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnalysisHistory:
    params.clamp(settings)
    items, total = analysis_store.list_analyses(
        db, user_id, kind="voice", page=params.page, limit=params.limit
    )
    return AnalysisHistory(
        history=items, pagination=analysis_store.page_meta(params.page, params.limit, total)
    )


@router.get("/analysis/{analysis_id}", response_model=AnalysisOut)
def get_voice_analysis(
    analysis_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> AnalysisOut:
    row = analysis_store.get_analysis_row(db, analysis_id)
    if row.kind != "voice":
        raise HTTPException(status_code=404, detail="Voice analysis not found")
    ensure_owner(row.user_id, user_id, "voice analysis")
    return AnalysisOut(**analysis_store.analysis_to_dict(row))
