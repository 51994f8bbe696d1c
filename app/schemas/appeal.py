from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.models.appeal import AppealOutcome
from app.schemas.common import to_naive_utc


class AppealCreate(BaseModel):
    ticket_number: str = Field(..., min_length=1)
    vehicle_registration: Optional[str] = None
    fine_amount: Decimal = Field(..., gt=0)
    issue_date: datetime
    due_date: datetime
    location: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    description: str = Field(..., min_length=10)
    ai_generated: bool = False

    @field_validator("issue_date", "due_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class AppealResponse(BaseModel):
    id: int
    ticket_number: str
    vehicle_registration: Optional[str] = None
    fine_amount: float
    issue_date: datetime
    due_date: datetime
    location: str
    reason: str
    description: str
    status: str
    ai_generated: bool
    user_reported_outcome: Optional[str] = None
    user_reported_at: Optional[datetime] = None
    outcome_notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AppealOutcomeUpdate(BaseModel):
    appeal_id: int
    outcome: AppealOutcome
    notes: Optional[str] = None
