"""
Pricing and payment lifecycle.

A Payment row is created PENDING before Stripe checkout. Confirmation (from the
Stripe webhook or the post-checkout verify call, whichever arrives first) moves
it to COMPLETED with a conditional update, so fulfilment runs exactly once:
- HPI_CHECK / BULK_HPI: add `quantity` prepaid HPI credits
- ANNUAL_SUBSCRIPTION: ANNUAL_PLAN for 365 days from now
- SINGLE_APPEAL: SINGLE_APPEAL plan with no end date
- promo code applied: record a PromoUsage row, unless the code's global or
  per-user limit was reached by another checkout completing first
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.core.pricing import (
    ANNUAL_PLAN_DAYS,
    HPI_SERVICE_TYPES,
    PRICING_CONFIG,
    ServiceType,
    SubscriptionType,
    to_money,
    unit_price,
)
from app.models.payment import Payment, PaymentStatus
from app.models.promo_code import PromoCode
from app.models.user import User
from app.repositories.accounts import AccountRepository
from app.repositories.promo_codes import PromoCodeRepository
from app.services.billing_email import send_payment_receipt_email
from app.services.promo_codes import calculate_discount

logger = logging.getLogger(__name__)


@dataclass
class PriceQuote:
    service_type: ServiceType
    quantity: int
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    promo_code: Optional[PromoCode] = None

    def to_dict(self) -> dict:
        config = PRICING_CONFIG[self.service_type]
        data = {
            "service": self.service_type.value,
            "name": config["name"],
            "description": config["description"],
            "quantity": self.quantity,
            "original_amount": float(self.original_amount),
            "final_amount": float(self.final_amount),
            "discount": None,
        }
        if self.promo_code is not None:
            data["discount"] = {
                "type": "promo",
                "amount": float(self.discount_amount),
                "description": f"{self.promo_code.code} promo code",
            }
        return data


def calculate_price(service_type: ServiceType, quantity: int = 1, promo: Optional[PromoCode] = None) -> PriceQuote:
    """List price times quantity, less the promo discount when a (validated) code is given."""
    if quantity < 1:
        raise ValueError("quantity must be at least 1")
    original = to_money(unit_price(service_type) * quantity)
    if promo is None:
        return PriceQuote(service_type, quantity, original, Decimal("0.00"), original)

    discount = calculate_discount(promo, original)
    return PriceQuote(
        service_type,
        quantity,
        discount.original_amount,
        discount.discount_amount,
        discount.final_amount,
        promo_code=promo,
    )


def create_payment(db: Session, user: User, quote: PriceQuote, description: str) -> Payment:
    payment = Payment(
        user_id=user.id,
        type=quote.service_type.value,
        description=description,
        quantity=quote.quantity,
        amount=quote.original_amount,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
        status=PaymentStatus.PENDING.value,
        promo_code_id=quote.promo_code.id if quote.promo_code else None,
        promo_code_used=quote.promo_code.code if quote.promo_code else None,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info(
        "Payment %s created for account %s: %s x%s, £%s (discount £%s)",
        payment.id, user.id, payment.type, payment.quantity, payment.final_amount, payment.discount_amount,
    )
    return payment


def _fulfil(db: Session, payment: Payment, now) -> None:
    service_type = ServiceType(payment.type)

    if service_type in HPI_SERVICE_TYPES:
        AccountRepository(db).add_hpi_credits(payment.user_id, payment.quantity)
        logger.info("Added %s HPI credits to account %s", payment.quantity, payment.user_id)
    elif service_type == ServiceType.ANNUAL_SUBSCRIPTION:
        db.execute(
            update(User)
            .where(User.id == payment.user_id)
            .values(
                subscription_type=SubscriptionType.ANNUAL_PLAN.value,
                subscription_start=now,
                subscription_end=now + timedelta(days=ANNUAL_PLAN_DAYS),
                is_active=True,
            )
            .execution_options(synchronize_session=False)
        )
        logger.info("Account %s upgraded to ANNUAL_PLAN", payment.user_id)
    elif service_type == ServiceType.SINGLE_APPEAL:
        db.execute(
            update(User)
            .where(User.id == payment.user_id)
            .values(
                subscription_type=SubscriptionType.SINGLE_APPEAL.value,
                subscription_start=now,
                subscription_end=None,
                is_active=True,
            )
            .execution_options(synchronize_session=False)
        )
        logger.info("Account %s moved to SINGLE_APPEAL", payment.user_id)

    if payment.promo_code_id is not None:
        _record_promo_usage(db, payment)


def _record_promo_usage(db: Session, payment: Payment) -> None:
    # Limits were checked at checkout, but other checkouts with the same code
    # may have completed since; recount under the code row lock.
    promos = PromoCodeRepository(db)
    promo = promos.get_for_update(payment.promo_code_id)
    if promo is None:
        logger.warning("Promo code %s for payment %s no longer exists", payment.promo_code_id, payment.id)
        return
    if promo.usage_limit is not None and promos.count_usages(promo.id) >= promo.usage_limit:
        logger.warning(
            "Usage limit reached for code %s; no usage recorded for payment %s", promo.code, payment.id
        )
        return
    if promo.per_user_limit is not None and (
        promos.count_user_usages(promo.id, payment.user_id) >= promo.per_user_limit
    ):
        logger.warning(
            "Per-user limit reached for code %s by account %s; no usage recorded for payment %s",
            promo.code,
            payment.user_id,
            payment.id,
        )
        return
    promos.record_usage(promo.id, payment.user_id, payment.id, payment.discount_amount)
    logger.info("Promo usage recorded for code %s on payment %s", promo.code, payment.id)


def confirm_payment(
    db: Session,
    payment_id: int,
    stripe_payment_intent_id: Optional[str] = None,
    clock: Clock = utcnow,
) -> Optional[Payment]:
    """
    Complete a pending payment and grant what it bought.
    Returns the payment, or None when it was not pending (already processed or unknown).
    """
    now = clock()
    values = {"status": PaymentStatus.COMPLETED.value, "completed_at": now}
    if stripe_payment_intent_id:
        values["stripe_payment_intent_id"] = stripe_payment_intent_id

    result = db.execute(
        update(Payment)
        .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        logger.info("Payment %s not pending; confirmation skipped", payment_id)
        return None

    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    db.refresh(payment)
    try:
        _fulfil(db, payment, now)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Fulfilment failed for payment %s", payment_id)
        raise

    db.refresh(payment)
    logger.info("Payment %s completed for account %s, type: %s", payment.id, payment.user_id, payment.type)

    email = db.query(User.email).filter(User.id == payment.user_id).scalar()
    send_payment_receipt_email(
        email,
        PRICING_CONFIG[ServiceType(payment.type)]["name"],
        payment.final_amount,
        payment.currency,
        discount=payment.discount_amount,
        paid_at=payment.completed_at,
    )
    return payment


def _close_pending(db: Session, payment_id: int, status: PaymentStatus, user_id: Optional[int] = None) -> bool:
    query = update(Payment).where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING.value)
    if user_id is not None:
        query = query.where(Payment.user_id == user_id)
    result = db.execute(query.values(status=status.value).execution_options(synchronize_session=False))
    db.commit()
    return result.rowcount == 1


def fail_payment(db: Session, payment_id: int) -> bool:
    failed = _close_pending(db, payment_id, PaymentStatus.FAILED)
    if failed:
        logger.info("Payment failed for payment %s", payment_id)
    return failed


def cancel_payment(db: Session, payment_id: int, user_id: int) -> bool:
    cancelled = _close_pending(db, payment_id, PaymentStatus.CANCELLED, user_id=user_id)
    if cancelled:
        logger.info("Payment %s cancelled by account %s", payment_id, user_id)
    return cancelled
