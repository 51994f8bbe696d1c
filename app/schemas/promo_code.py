from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from app.core.pricing import ServiceType
from app.models.promo_code import DiscountType
from app.schemas.common import to_naive_utc

CODE_PATTERN = r"^[A-Z0-9_-]+$"


class PromoCodeValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    order_value: Decimal = Field(..., ge=0)
    service_type: ServiceType
    quantity: int = Field(1, ge=1)


class PromoCodeCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=20, pattern=CODE_PATTERN)
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    applicable_for: str = "HPI_CHECK,ANNUAL_SUBSCRIPTION"

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("applicable_for")
    @classmethod
    def _normalize_services(cls, value: str) -> str:
        return ",".join(item.strip().upper() for item in value.split(",") if item.strip())


class PromoCodeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    max_discount: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None
    applicable_for: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    @field_validator("applicable_for")
    @classmethod
    def _normalize_services(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return ",".join(item.strip().upper() for item in value.split(",") if item.strip())


class PromoCodeResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    discount_type: str
    discount_value: float
    min_order_value: Optional[float] = None
    max_discount: Optional[float] = None
    usage_limit: Optional[int] = None
    per_user_limit: Optional[int] = None
    valid_from: datetime
    valid_until: datetime
    is_active: bool
    applicable_for: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
