"""Background processing of uploaded recordings through the status state machine.

Each job opens its own session (the request's session is gone by the time it
runs), moves the document forward one status at a time and records
``status=error`` plus the message if any step fails. Nothing is retried.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from healthscreen.ml.risk.pipeline import run_text_pipeline, run_voice_pipeline
from healthscreen.services import analysis_store, conversation_store
from healthscreen.services.providers import Summarizer, Transcriber
from healthscreen.services.status import Status
from healthscreen.services.uploads import read_upload

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def process_voice_analysis(
    session_factory: SessionFactory,
    analysis_id: str,
    transcriber: Transcriber,
    sample_rate_hz: int,
    transcript_hint: Optional[str] = None,
) -> None:
    db = session_factory()
    try:
        row = analysis_store.get_analysis_row(db, analysis_id)
        if row.status != Status.UPLOADED.value:
            logger.info("analysis %s is not in uploaded status (%s); skipping", analysis_id, row.status)
            return

        try:
            analysis_store.set_status(db, analysis_id, Status.PROCESSING)
            source = row.source or {}
            audio = read_upload(source.get("file_path", ""))
            encoding = source.get("content_type", "")

            analysis_store.set_status(db, analysis_id, Status.TRANSCRIBING)
            text = transcriber.transcribe(audio, encoding, hint=transcript_hint)

            analysis_store.set_status(db, analysis_id, Status.ANALYZING, transcription=text)
            result = run_voice_pipeline(audio, encoding, transcript=text or None, sample_rate_hz=sample_rate_hz)

            analysis_store.set_status(db, analysis_id, Status.COMPLETED, result=result.to_payload())
        except Exception as e:
            logger.exception("voice analysis %s failed", analysis_id)
            db.rollback()
            analysis_store.set_status(db, analysis_id, Status.ERROR, error=str(e))
    finally:
        db.close()


def process_conversation(
    session_factory: SessionFactory,
    conversation_id: str,
    transcriber: Transcriber,
    summarizer: Summarizer,
    transcript_hint: Optional[str] = None,
) -> None:
    db = session_factory()
    try:
        row = conversation_store.get_conversation_row(db, conversation_id)
        if row.status != Status.UPLOADED.value:
            logger.info("conversation %s is not in uploaded status (%s); skipping", conversation_id, row.status)
            return

        try:
            conversation_store.set_status(db, conversation_id, Status.PROCESSING)
            source = row.source or {}
            audio = read_upload(source["file_path"]) if source.get("file_path") else b""

            conversation_store.set_status(db, conversation_id, Status.TRANSCRIBING)
            text = transcriber.transcribe(audio, source.get("content_type", ""), hint=transcript_hint)
            if not text:
                raise ValueError("no transcription available for this conversation")

            conversation_store.set_status(db, conversation_id, Status.SUMMARIZING, transcription=text)
            summary = summarizer.summarize(text)
            screening = run_text_pipeline(text).to_payload()

            conversation_store.set_status(
                db, conversation_id, Status.COMPLETED, summary=summary, screening=screening
            )
        except Exception as e:
            logger.exception("conversation %s failed", conversation_id)
            db.rollback()
            conversation_store.set_status(db, conversation_id, Status.ERROR, error=str(e))
    finally:
        db.close()
