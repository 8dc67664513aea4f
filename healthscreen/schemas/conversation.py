from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from healthscreen.schemas.analysis import Pagination, ScreeningResult


class ConversationOut(BaseModel):
    id: str
    user_id: str
    title: Optional[str] = None
    status: str
    source: Dict[str, Any] = Field(default_factory=dict)
    transcription: Optional[str] = None
    summary: Optional[Dict[str, Any]] = None
    screening: Optional[ScreeningResult] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None


class ConversationHistory(BaseModel):
    conversations: List[ConversationOut]
    pagination: Pagination
