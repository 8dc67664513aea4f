from typing import List, Optional

from pydantic import BaseModel, Field

from healthscreen.schemas.analysis import Pagination, ScreeningResult


class AdviceCreate(BaseModel):
    advice: str = Field(..., min_length=1)
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
    visit_date: Optional[str] = Field(None, description="ISO 8601; defaults to now")
    notes: Optional[str] = None


class AdviceUpdate(BaseModel):
    advice: Optional[str] = None
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
    visit_date: Optional[str] = None
    notes: Optional[str] = None


class AdviceOut(BaseModel):
    id: str
    user_id: str
    doctor_name: Optional[str] = None
    specialization: Optional[str] = None
    advice: str
    visit_date: str
    notes: Optional[str] = None
    evaluation: Optional[ScreeningResult] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AdviceHistory(BaseModel):
    advice_history: List[AdviceOut]
    pagination: Pagination


class DoctorOut(BaseModel):
    name: str
    specialization: Optional[str] = None
    last_visit: Optional[str] = None
