from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from healthscreen.db.models import Conversation
from healthscreen.services.analysis_store import NotFound, iso
from healthscreen.services.result_schema import normalize_result
from healthscreen.services.status import CONVERSATION, Status, check_transition
from healthscreen.utils.time import now_utc


def conversation_to_dict(row: Conversation) -> Dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "title": row.title,
        "status": row.status,
        "source": row.source or {},
        "transcription": row.transcription,
        "summary": row.summary,
        "screening": normalize_result(row.screening),
        "error": row.error,
        "created_at": iso(row.created_at),
        "updated_at": iso(row.updated_at),
        "completed_at": iso(row.completed_at),
    }


def create_conversation(
    db: Session, *, user_id: str, title: Optional[str], source: Optional[Dict[str, Any]] = None
) -> Conversation:
    row = Conversation(user_id=user_id, title=title, status=Status.UPLOADED.value, source=source or {})
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_conversation_row(db: Session, conversation_id: str) -> Conversation:
    row = db.get(Conversation, conversation_id)
    if row is None:
        raise NotFound(f"conversation {conversation_id} not found")
    return row


def set_status(
    db: Session,
    conversation_id: str,
    target: Status,
    *,
    transcription: Optional[str] = None,
    summary: Optional[Dict[str, Any]] = None,
    screening: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> Conversation:
    row = get_conversation_row(db, conversation_id)
    row.status = check_transition(row.status, target, CONVERSATION).value
    if transcription is not None:
        row.transcription = transcription
    if summary is not None:
        row.summary = summary
    if screening is not None:
        row.screening = screening
    if error is not None:
        row.error = error
    if target is Status.COMPLETED:
        row.completed_at = now_utc()
    db.commit()
    db.refresh(row)
    return row


def list_conversations(
    db: Session, user_id: str, *, page: int = 1, limit: int = 10
) -> Tuple[List[Dict[str, Any]], int]:
    q = db.query(Conversation).filter(Conversation.user_id == user_id)
    total = q.count()
    rows = q.order_by(Conversation.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return [conversation_to_dict(r) for r in rows], total


def delete_conversation(db: Session, row: Conversation) -> None:
    db.delete(row)
    db.commit()
