from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Numeric, Text
from enum import Enum
from app.core.clock import utcnow
from app.db.base import Base


class AppealStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AppealOutcome(str, Enum):
    """Outcome reported by the driver, independent of the formal status."""
    PENDING = "pending"
    SUCCESSFUL = "successful"
    UNSUCCESSFUL = "unsuccessful"


# Status an appeal moves to when the driver reports an outcome
OUTCOME_STATUS = {
    AppealOutcome.SUCCESSFUL: AppealStatus.APPROVED,
    AppealOutcome.UNSUCCESSFUL: AppealStatus.REJECTED,
    AppealOutcome.PENDING: AppealStatus.UNDER_REVIEW,
}


class Appeal(Base):
    __tablename__ = "appeals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_number = Column(String, nullable=False)
    vehicle_registration = Column(String, nullable=True, index=True)
    fine_amount = Column(Numeric(10, 2), nullable=False)
    issue_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    location = Column(String, nullable=False)
    reason = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, default=AppealStatus.SUBMITTED.value, nullable=False)
    ai_generated = Column(Boolean, default=False, nullable=False)

    user_reported_outcome = Column(String, nullable=True)
    user_reported_at = Column(DateTime, nullable=True)
    outcome_notes = Column(Text, nullable=True)

    # Caps are evaluated against created_at over a rolling window
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
