from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ScreeningResult(BaseModel):
    score: float
    label: str
    recommendations: List[str]
    breakdown: Dict[str, float]
    raw_score: float
    features: Dict[str, Any] = Field(default_factory=dict)
    model_version: str


class TextScreeningRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Symptom description, advice or transcript")


class AnalysisOut(BaseModel):
    id: str
    user_id: str
    kind: str
    status: str
    source: Dict[str, Any] = Field(default_factory=dict)
    transcription: Optional[str] = None
    result: Optional[ScreeningResult] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None


class JobAccepted(BaseModel):
    id: str
    status: str


class Pagination(BaseModel):
    page: int
    limit: int
    totalItems: int
    totalPages: int


class AnalysisHistory(BaseModel):
    history: List[AnalysisOut]
    pagination: Pagination
