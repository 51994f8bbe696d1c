from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric
from enum import Enum
from app.core.clock import utcnow
from app.core.pricing import CURRENCY
from app.db.base import Base


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class Payment(Base):
    """
    A purchase of a ClearRide service, created before Stripe checkout and
    completed by the webhook or the post-checkout verify call.
    """

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)  # ServiceType value
    description = Column(String, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)

    # Amounts in major units (GBP)
    amount = Column(Numeric(10, 2), nullable=False)  # Before discount
    discount_amount = Column(Numeric(10, 2), default=0, nullable=False)
    final_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, default=CURRENCY, nullable=False)

    status = Column(String, default=PaymentStatus.PENDING.value, nullable=False, index=True)
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id", ondelete="SET NULL"), nullable=True)
    promo_code_used = Column(String, nullable=True)

    # Stripe identifiers
    stripe_session_id = Column(String, nullable=True, unique=True, index=True)
    stripe_payment_intent_id = Column(String, nullable=True, index=True)

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
