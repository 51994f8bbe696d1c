from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Numeric, Text
from enum import Enum
from app.core.clock import utcnow
from app.db.base import Base


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


# Wildcard entry in applicable_for
ALL_SERVICES = "ALL"


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, index=True, nullable=False)  # Stored upper-case
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String, nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    min_order_value = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)  # Cap for PERCENTAGE codes only

    usage_limit = Column(Integer, nullable=True)  # Global redemptions
    per_user_limit = Column(Integer, nullable=True)

    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Comma-separated service types, or "ALL"
    applicable_for = Column(String, default="HPI_CHECK,ANNUAL_SUBSCRIPTION", nullable=False)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def applicable_services(self) -> set[str]:
        return {
            service.strip().upper()
            for service in (self.applicable_for or "").split(",")
            if service.strip()
        }

    def __repr__(self):
        return f"<PromoCode(code={self.code}, type={self.discount_type}, value={self.discount_value})>"
