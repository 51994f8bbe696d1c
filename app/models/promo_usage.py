"""
One row per redeemed promo code. Written by payment confirmation only and never
updated afterwards; global and per-user limits are counted from these rows.
"""
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Numeric
from app.core.clock import utcnow
from app.db.base import Base


class PromoUsage(Base):
    __tablename__ = "promo_usages"

    id = Column(Integer, primary_key=True, index=True)
    promo_code_id = Column(Integer, ForeignKey("promo_codes.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, unique=True)
    discount_applied = Column(Numeric(10, 2), nullable=False)
    used_at = Column(DateTime, default=utcnow, nullable=False)
