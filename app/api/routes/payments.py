"""
Payment Routes
Pricing, Stripe Checkout Session creation, post-checkout verification and cancellation.
"""
import logging
from decimal import Decimal
from typing import Optional

import stripe
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import FRONTEND_URL, STRIPE_SECRET_KEY
from app.core.pricing import CURRENCY, ServiceType
from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_clock, get_discount_calculator
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.schemas.payment import PaymentCancelRequest, PaymentCreate, PaymentVerifyRequest
from app.services.payments import (
    PriceQuote,
    calculate_price,
    cancel_payment,
    confirm_payment,
    create_payment,
    fail_payment,
)
from app.services.promo_codes import DiscountCalculator

logger = logging.getLogger(__name__)

router = APIRouter()

stripe.api_key = STRIPE_SECRET_KEY


def _quote(
    calculator: DiscountCalculator,
    user: User,
    service_type: ServiceType,
    quantity: int,
    promo_code: Optional[str]
) -> PriceQuote:
    """Price an order, applying the promo code or raising 400 with its rejection reason."""
    quote = calculate_price(service_type, quantity)
    if not promo_code:
        return quote

    validation = calculator.validate(promo_code, quote.original_amount, service_type.value, user.id)
    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": validation.error.value, "message": validation.message}
        )
    return calculate_price(service_type, quantity, promo=validation.promo_code)


def _payment_dict(payment: Payment) -> dict:
    return {
        "payment_id": payment.id,
        "status": payment.status,
        "type": payment.type,
        "quantity": payment.quantity,
        "amount": float(payment.amount),
        "discount_amount": float(payment.discount_amount),
        "final_amount": float(payment.final_amount),
        "currency": payment.currency,
        "promo_code": payment.promo_code_used,
    }


@router.get("/pricing")
def get_pricing(
    service: Optional[ServiceType] = None,
    quantity: int = Query(1, ge=1),
    promo_code: Optional[str] = None,
    user: User = Depends(get_current_user),
    calculator: DiscountCalculator = Depends(get_discount_calculator)
):
    """List prices, or the price of one service with an optional promo code applied."""
    if service is None:
        return {
            "currency": CURRENCY,
            "services": [calculate_price(s).to_dict() for s in ServiceType],
        }

    quote = calculate_price(service, quantity)
    if promo_code:
        validation = calculator.validate(promo_code, quote.original_amount, service.value, user.id)
        if validation.valid:
            quote = calculate_price(service, quantity, promo=validation.promo_code)
    return {"currency": CURRENCY, **quote.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_checkout(
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    calculator: DiscountCalculator = Depends(get_discount_calculator),
    clock: Clock = Depends(get_clock)
):
    """
    Create a pending payment and a Stripe Checkout Session for it.
    Returns the checkout URL to redirect the user to.
    """
    quote = _quote(calculator, user, payment_data.type, payment_data.quantity, payment_data.promo_code)
    payment = create_payment(db, user, quote, payment_data.description)

    if quote.final_amount <= Decimal("0"):
        # Fully discounted: nothing to charge
        confirm_payment(db, payment.id, clock=clock)
        db.refresh(payment)
        return {**_payment_dict(payment), "checkout_url": None, "session_id": None}

    metadata = {
        "payment_id": str(payment.id),
        "user_id": str(user.id),
        "type": payment.type,
    }
    try:
        checkout_session = stripe.checkout.Session.create(
            mode="payment",
            payment_method_types=["card"],
            customer_email=user.email,
            client_reference_id=str(payment.id),
            line_items=[
                {
                    "price_data": {
                        "currency": CURRENCY.lower(),
                        "unit_amount": int(quote.final_amount * 100),
                        "product_data": {"name": payment.description},
                    },
                    "quantity": 1,
                }
            ],
            success_url=f"{FRONTEND_URL}/payment/success?session_id={{CHECKOUT_SESSION_ID}}&payment_id={payment.id}",
            cancel_url=f"{FRONTEND_URL}/payment/cancelled?payment_id={payment.id}",
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
        )
    except stripe.StripeError as e:
        logger.error("Stripe error creating checkout session for payment %s: %s", payment.id, e)
        fail_payment(db, payment.id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create checkout session"
        )

    payment.stripe_session_id = checkout_session.id
    db.commit()
    db.refresh(payment)
    logger.info("Created Stripe Checkout Session %s for payment %s", checkout_session.id, payment.id)

    return {
        **_payment_dict(payment),
        "checkout_url": checkout_session.url,
        "session_id": checkout_session.id,
    }


@router.post("/verify")
def verify_checkout(
    request: PaymentVerifyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock)
):
    """
    Confirm a payment straight after checkout, without waiting for the webhook.
    Safe to call more than once.
    """
    payment = db.query(Payment).filter(
        Payment.id == request.payment_id,
        Payment.user_id == user.id
    ).first()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found"
        )

    if payment.status == PaymentStatus.COMPLETED.value:
        return _payment_dict(payment)

    try:
        checkout_session = stripe.checkout.Session.retrieve(request.session_id)
    except stripe.StripeError as e:
        logger.error("Stripe error retrieving session %s: %s", request.session_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to retrieve checkout session"
        )

    metadata = checkout_session.metadata or {}
    session_payment_id = metadata["payment_id"] if "payment_id" in metadata else None
    if str(session_payment_id) != str(payment.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This checkout session does not belong to this payment"
        )

    if checkout_session.payment_status != "paid":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Checkout session is not paid"
        )

    confirm_payment(db, payment.id, stripe_payment_intent_id=checkout_session.payment_intent, clock=clock)
    db.refresh(payment)
    return _payment_dict(payment)


@router.post("/cancel")
def cancel_checkout(
    request: PaymentCancelRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if not cancel_payment(db, request.payment_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment not found or no longer pending"
        )
    return {"message": "Payment cancelled"}


@router.get("")
def list_payments(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    payments = (
        db.query(Payment)
        .filter(Payment.user_id == user.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )
    return [_payment_dict(p) for p in payments]
