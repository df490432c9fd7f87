"""
Pydantic schemas for device progress
"""
from pydantic import BaseModel, Field
from typing import List
from datetime import datetime


class ProgressSnapshot(BaseModel):
    """Local mirror blob: checked set (as array) plus this viewer's check order"""
    checked: List[str] = []
    history: List[str] = []


class ProgressRow(BaseModel):
    """Persisted progress flag for one device"""
    device_uid: str
    checked: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class ProgressUpdate(BaseModel):
    """Schema for checking / unchecking one device"""
    device_uid: str = Field(..., min_length=1)
    checked: bool = Field(..., description="True = inspected")


class ProgressUpdateResponse(BaseModel):
    """Row image after an upsert"""
    checklist_id: int
    device_uid: str
    checked: bool
    updated_at: datetime
