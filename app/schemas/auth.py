from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    subscription_type: str
    subscription_start: Optional[datetime] = None
    subscription_end: Optional[datetime] = None
    is_active: bool
    hpi_credits: int

    model_config = ConfigDict(from_attributes=True)


class UsageAccessRequest(BaseModel):
    service: str  # "appeal" or "hpi"
    data: Optional[dict] = None


class CreditsResponse(BaseModel):
    hpi_credits: int
