"""
Webhooks for the payment provider (Stripe).
Register https://your-backend.com/webhooks/stripe in the Stripe dashboard.
"""
import json
import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import STRIPE_WEBHOOK_SECRET
from app.db.session import get_db
from app.dependencies.services import get_clock
from app.services.payments import confirm_payment, fail_payment

logger = logging.getLogger(__name__)

router = APIRouter()


def _payment_id(obj: dict):
    meta = obj.get("metadata") or {}
    payment_id = meta.get("payment_id") or obj.get("client_reference_id")
    try:
        return int(payment_id)
    except (TypeError, ValueError):
        return None


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Stripe webhook.
    checkout.session.completed / payment_intent.succeeded complete the payment;
    payment_intent.payment_failed marks it failed. Redelivered events are no-ops.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if STRIPE_WEBHOOK_SECRET:
        try:
            stripe.Webhook.construct_event(payload, sig_header, STRIPE_WEBHOOK_SECRET)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Rejected Stripe webhook: %s", e)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid webhook signature"
            )

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")

    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    payment_id = _payment_id(obj)
    logger.info("Stripe webhook type=%s payment_id=%s", event_type, payment_id)

    if payment_id is None:
        return {"received": True}

    if event_type == "checkout.session.completed":
        if obj.get("payment_status") == "paid":
            confirm_payment(db, payment_id, stripe_payment_intent_id=obj.get("payment_intent"), clock=clock)
    elif event_type == "payment_intent.succeeded":
        confirm_payment(db, payment_id, stripe_payment_intent_id=obj.get("id"), clock=clock)
    elif event_type == "payment_intent.payment_failed":
        fail_payment(db, payment_id)

    return {"received": True}
