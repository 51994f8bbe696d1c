"""
Send payment receipt emails after a payment completes.
Uses Resend if RESEND_API_KEY is set; otherwise no-op so payment confirmation never fails.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

import resend

from app.core.config import APP_NAME, BILLING_FROM_EMAIL, RESEND_API_KEY

logger = logging.getLogger(__name__)


def send_payment_receipt_email(
    to_email: str,
    service_name: str,
    amount: Decimal,
    currency: str,
    discount: Optional[Decimal] = None,
    paid_at: Optional[datetime] = None,
) -> bool:
    """
    Send a receipt for a completed payment.
    Returns True if sent, False if skipped (no API key) or failed.
    Does not raise; logs errors so payment processing is never broken.
    """
    if not RESEND_API_KEY or not to_email:
        return False

    resend.api_key = RESEND_API_KEY

    amount_str = f"{amount:.2f}"
    currency_display = currency.upper() if currency else "GBP"
    date_str = paid_at.strftime("%B %d, %Y") if paid_at else ""

    subject = f"Your {APP_NAME} receipt – {service_name} ({currency_display} {amount_str})"
    html = f"""
    <p>Hi,</p>
    <p>Your payment for <strong>{service_name}</strong> has been received.</p>
    <p><strong>Amount:</strong> {currency_display} {amount_str}</p>
    <p><strong>Date:</strong> {date_str}</p>
    """
    if discount:
        html += f"<p><strong>Promo discount:</strong> {currency_display} {discount:.2f}</p>"
    html += f"""
    <p>Thank you for using {APP_NAME}.</p>
    """

    try:
        params = {
            "from": BILLING_FROM_EMAIL,
            "to": [to_email],
            "subject": subject,
            "html": html.strip(),
        }
        resend.Emails.send(params)
        logger.info("Receipt email sent to %s", to_email)
        return True
    except Exception as e:
        logger.warning("Failed to send receipt to %s: %s", to_email, e)
        return False
