from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Analysis(Base):
    """One screening run (voice recording or free text) owned by a user."""

    __tablename__ = "analysis"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    kind = Column(String, nullable=False)  # voice | text
    status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # upload metadata: filename, content type, stored file path, size
    source = Column(JSON, nullable=True)
    transcription = Column(Text, nullable=True)

    # PipelineResult payload
    result = Column(JSON, nullable=True)
    schema_version = Column(Integer, nullable=True)
    score = Column(Float, nullable=True)
    label = Column(String, nullable=True)
    error = Column(Text, nullable=True)


class DoctorAdvice(Base):
    __tablename__ = "doctor_advice"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    doctor_name = Column(String, nullable=True, index=True)
    specialization = Column(String, nullable=True)
    advice = Column(Text, nullable=False)
    visit_date = Column(String, nullable=False)  # UTC ISO 8601
    notes = Column(Text, nullable=True)
    evaluation = Column(JSON, nullable=True)
    schema_version = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class Conversation(Base):
    __tablename__ = "conversation"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=True)
    status = Column(String, nullable=False)
    source = Column(JSON, nullable=True)
    transcription = Column(Text, nullable=True)
    summary = Column(JSON, nullable=True)
    screening = Column(JSON, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)


class HealthRecord(Base):
    __tablename__ = "health_record"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    record_type = Column(String, index=True, nullable=False)  # blood_sugar, weight, blood_pressure, ...
    value = Column(Float, nullable=False)
    unit = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    record_date = Column(String, nullable=False)  # UTC ISO 8601, sortable as text
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
