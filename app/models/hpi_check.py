from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from enum import Enum
from app.core.clock import utcnow
from app.db.base import Base


class HpiCheckStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class HpiCheck(Base):
    """A requested vehicle history check, picked up by the HPI provider integration."""
    __tablename__ = "hpi_checks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    registration = Column(String, nullable=False, index=True)  # Upper-case, no spaces
    status = Column(String, default=HpiCheckStatus.PENDING.value, nullable=False)
    cost = Column(Numeric(10, 2), nullable=False)
    paid_with = Column(String, nullable=False)  # "credit" or "subscription"
    created_at = Column(DateTime, default=utcnow, nullable=False)
