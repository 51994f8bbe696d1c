from sqlalchemy import Column, Integer, String, Boolean, DateTime, CheckConstraint
from app.core.clock import utcnow
from app.core.pricing import SubscriptionType
from app.db.base import Base


class User(Base):
    """A registered driver account and its entitlement state."""
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("hpi_credits >= 0", name="ck_users_hpi_credits_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Subscription window; subscription_end is NULL for SINGLE_APPEAL
    subscription_type = Column(String, default=SubscriptionType.FREE_TRIAL.value, nullable=False)
    subscription_start = Column(DateTime, nullable=True)
    subscription_end = Column(DateTime, nullable=True)

    # One free appeal per account; the plate records which vehicle consumed it
    appeal_trial_used = Column(Boolean, default=False, nullable=False)
    appeal_trial_used_at = Column(DateTime, nullable=True)
    appeal_trial_reg = Column(String, nullable=True)

    # Prepaid HPI checks
    hpi_credits = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, subscription_type={self.subscription_type})>"
