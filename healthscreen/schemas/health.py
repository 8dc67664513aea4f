from typing import List, Optional

from pydantic import BaseModel, Field

from healthscreen.schemas.analysis import Pagination


class HealthRecordCreate(BaseModel):
    record_type: str = Field(..., min_length=1, description="e.g. blood_sugar, weight, blood_pressure")
    value: float
    unit: Optional[str] = None
    notes: Optional[str] = None
    record_date: Optional[str] = Field(None, description="ISO 8601; defaults to now")


class HealthRecordUpdate(BaseModel):
    value: Optional[float] = None
    unit: Optional[str] = None
    notes: Optional[str] = None
    record_date: Optional[str] = None


class HealthRecordOut(BaseModel):
    id: str
    user_id: str
    record_type: str
    value: float
    unit: Optional[str] = None
    notes: Optional[str] = None
    record_date: str
    created_at: Optional[str] = None


class HealthRecordPage(BaseModel):
    records: List[HealthRecordOut]
    pagination: Pagination


class LatestValue(BaseModel):
    value: float
    unit: Optional[str] = None
    record_date: str


class HealthStats(BaseModel):
    record_type: str
    count: int
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    latest: Optional[LatestValue] = None
