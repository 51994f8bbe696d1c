from pydantic import BaseModel, Field
from typing import Optional

from app.core.pricing import ServiceType


class PaymentCreate(BaseModel):
    type: ServiceType
    description: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    promo_code: Optional[str] = None


class PaymentVerifyRequest(BaseModel):
    session_id: str
    payment_id: int


class PaymentCancelRequest(BaseModel):
    payment_id: int
