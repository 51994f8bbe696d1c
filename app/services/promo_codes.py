"""
Promo code validation and discount arithmetic, plus the admin-side rules for
creating, editing and removing codes.

validate() is read-only: a PromoUsage row is only written when a payment that
used the code completes (see app/services/payments.py).
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.core.errors import RejectionReason, rejection_message
from app.core.pricing import to_money
from app.models.promo_code import ALL_SERVICES, DiscountType, PromoCode
from app.repositories.promo_codes import PromoCodeRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class DiscountResult:
    discount_amount: Decimal
    final_amount: Decimal
    original_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "amount": float(self.discount_amount),
            "original_amount": float(self.original_amount),
            "final_amount": float(self.final_amount),
            "savings": float(self.discount_amount),
        }


@dataclass
class PromoValidation:
    valid: bool
    promo_code: Optional[PromoCode] = None
    discount: Optional[DiscountResult] = None
    error: Optional[RejectionReason] = None
    message: str = ""

    def to_dict(self) -> dict:
        if not self.valid:
            return {"valid": False, "error": self.error.value, "message": self.message}
        return {
            "valid": True,
            "promo_code": {
                "id": self.promo_code.id,
                "code": self.promo_code.code,
                "name": self.promo_code.name,
                "description": self.promo_code.description,
                "discount_type": self.promo_code.discount_type,
                "discount_value": float(self.promo_code.discount_value),
            },
            "discount": self.discount.to_dict(),
        }


class PromoCodeError(Exception):
    """Admin operation rejected; carries the reason and a user-facing message."""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


def calculate_discount(promo: PromoCode, order_value) -> DiscountResult:
    """
    Discount for an order: percentage of the order (capped at max_discount) or a
    fixed amount, never more than the order itself.
    """
    order_value = to_money(order_value)
    discount_value = Decimal(str(promo.discount_value))

    if promo.discount_type == DiscountType.PERCENTAGE.value:
        discount = to_money(order_value * discount_value / Decimal(100))
        if promo.max_discount is not None and discount > promo.max_discount:
            discount = to_money(promo.max_discount)
    else:
        discount = to_money(discount_value)

    discount = min(discount, order_value)
    return DiscountResult(
        discount_amount=discount,
        final_amount=order_value - discount,
        original_amount=order_value,
    )


class DiscountCalculator:
    def __init__(self, promo_codes: PromoCodeRepository, clock: Clock = utcnow):
        self.promo_codes = promo_codes
        self.clock = clock

    def _reject(self, reason: RejectionReason, message: Optional[str] = None) -> PromoValidation:
        return PromoValidation(valid=False, error=reason, message=message or rejection_message(reason))

    def validate(self, code: str, order_value, service_type: str, account_id: int) -> PromoValidation:
        promo = self.promo_codes.get_by_code(code or "")
        if promo is None:
            return self._reject(RejectionReason.NOT_FOUND)

        if not promo.is_active:
            return self._reject(RejectionReason.INACTIVE)

        now = self.clock()
        if now < promo.valid_from:
            return self._reject(RejectionReason.NOT_YET_VALID)
        if now > promo.valid_until:
            return self._reject(RejectionReason.EXPIRED)

        services = promo.applicable_services()
        if ALL_SERVICES not in services and str(service_type).upper() not in services:
            return self._reject(RejectionReason.SERVICE_MISMATCH)

        if promo.usage_limit is not None and self.promo_codes.count_usages(promo.id) >= promo.usage_limit:
            return self._reject(RejectionReason.USAGE_LIMIT_REACHED)

        if promo.per_user_limit is not None and (
            self.promo_codes.count_user_usages(promo.id, account_id) >= promo.per_user_limit
        ):
            return self._reject(RejectionReason.PER_USER_LIMIT_REACHED)

        order_value = to_money(order_value)
        if promo.min_order_value is not None and order_value < promo.min_order_value:
            return self._reject(
                RejectionReason.MINIMUM_ORDER_NOT_MET,
                f"Minimum order value of £{to_money(promo.min_order_value)} required for this promo code",
            )

        return PromoValidation(valid=True, promo_code=promo, discount=calculate_discount(promo, order_value))


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------

def _check_invariants(discount_type: str, discount_value, valid_from, valid_until) -> None:
    if valid_from is not None and valid_until is not None and valid_until <= valid_from:
        raise PromoCodeError(
            RejectionReason.INVALID_PROMO_CODE,
            "Valid until date must be after valid from date",
        )
    if discount_type == DiscountType.PERCENTAGE.value and discount_value is not None and discount_value > 100:
        raise PromoCodeError(
            RejectionReason.INVALID_PROMO_CODE,
            "Percentage discount cannot exceed 100%",
        )


def create_promo_code(db: Session, data: dict, created_by: Optional[int] = None) -> PromoCode:
    code = data["code"].strip().upper()
    if PromoCodeRepository(db).get_by_code(code):
        raise PromoCodeError(RejectionReason.INVALID_PROMO_CODE, "Promo code already exists")

    _check_invariants(data["discount_type"], data["discount_value"], data["valid_from"], data["valid_until"])

    promo = PromoCode(**{**data, "code": code}, created_by=created_by)
    db.add(promo)
    db.commit()
    db.refresh(promo)
    logger.info("Promo code %s created by account %s", promo.code, created_by)
    return promo


def update_promo_code(db: Session, promo: PromoCode, changes: dict) -> PromoCode:
    """Apply a partial update; invariants are checked against the merged result."""
    merged = {
        "discount_type": changes.get("discount_type", promo.discount_type),
        "discount_value": changes.get("discount_value", promo.discount_value),
        "valid_from": changes.get("valid_from", promo.valid_from),
        "valid_until": changes.get("valid_until", promo.valid_until),
    }
    _check_invariants(**merged)

    for field, value in changes.items():
        setattr(promo, field, value)
    db.commit()
    db.refresh(promo)
    logger.info("Promo code %s updated: %s", promo.code, sorted(changes))
    return promo


def delete_promo_code(db: Session, promo: PromoCode) -> None:
    """Remove an unused code. Used codes must be deactivated instead."""
    if PromoCodeRepository(db).count_usages(promo.id) > 0:
        reason = RejectionReason.PROMO_CODE_IN_USE
        raise PromoCodeError(reason, rejection_message(reason))
    db.delete(promo)
    db.commit()
    logger.info("Promo code %s deleted", promo.code)
