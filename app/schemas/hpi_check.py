from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class HpiCheckCreate(BaseModel):
    registration: str = Field(..., min_length=1)


class HpiCheckResponse(BaseModel):
    id: int
    registration: str
    status: str
    cost: float
    paid_with: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
