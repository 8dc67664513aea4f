from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from healthscreen.api.deps import PageParams, current_user, ensure_owner, get_db, get_settings
from healthscreen.api.routes.voice import read_audio_upload
from healthscreen.schemas.analysis import JobAccepted
from healthscreen.schemas.conversation import ConversationHistory, ConversationOut
from healthscreen.services import conversation_store
from healthscreen.services.analysis_store import page_meta
from healthscreen.services.jobs import process_conversation
from healthscreen.services.status import Status
from healthscreen.services.uploads import delete_upload, save_upload
from healthscreen.settings import Settings


router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("", response_model=JobAccepted, status_code=202)
async def record_conversation(
    request: Request,
    background: BackgroundTasks,
    title: Optional[str] = Form(None),
    transcript: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JobAccepted:
    """Accept a doctor/patient conversation (recording and/or transcript) for summarisation."""
    if audio is None and not (transcript and transcript.strip()):
        raise HTTPException(status_code=400, detail="Provide an audio recording or a transcript")

    source = {}
    if audio is not None:
        content_type, data = await read_audio_upload(audio, settings)
        source = {
            "filename": audio.filename,
            "content_type": content_type,
            "file_path": save_upload(settings.upload_dir, user_id, audio.filename or "", data, folder="conversations"),
            "size_bytes": len(data),
        }

    row = conversation_store.create_conversation(db, user_id=user_id, title=title, source=source)
    background.add_task(
        process_conversation,
        request.app.state.session_factory,
        row.id,
        request.app.state.transcriber,
        request.app.state.summarizer,
        transcript,
    )
    return JobAccepted(id=row.id, status=Status.UPLOADED.value)


@router.get("", response_model=ConversationHistory)
def conversation_history(
    params: PageParams = Depends(),
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ConversationHistory:
    params.clamp(settings)
    items, total = conversation_store.list_conversations(db, user_id, page=params.page, limit=params.limit)
    return ConversationHistory(conversations=items, pagination=page_meta(params.page, params.limit, total))


@router.get("/{conversation_id}", response_model=ConversationOut)
def get_conversation(
    conversation_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
) -> ConversationOut:
    row = conversation_store.get_conversation_row(db, conversation_id)
    ensure_owner(row.user_id, user_id, "conversation")
    return ConversationOut(**conversation_store.conversation_to_dict(row))


@router.delete("/{conversation_id}")
def delete_conversation(
    conversation_id: str,
    user_id: str = Depends(current_user),
    db: Session = Depends(get_db),
):
    row = conversation_store.get_conversation_row(db, conversation_id)
    ensure_owner(row.user_id, user_id, "conversation")
    file_path = (row.source or {}).get("file_path")
    conversation_store.delete_conversation(db, row)
    delete_upload(file_path)
    return {"status": "deleted", "id": conversation_id}
