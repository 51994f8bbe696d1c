"""
Tests for pricing and the payment confirmation lifecycle.
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.core.pricing import ServiceType, SubscriptionType
from app.models.payment import Payment, PaymentStatus
from app.models.promo_code import DiscountType
from app.repositories.promo_codes import PromoCodeRepository
from app.services.payments import (
    calculate_price,
    cancel_payment,
    confirm_payment,
    create_payment,
    fail_payment,
)


class TestCalculatePrice:
    def test_list_prices(self):
        assert calculate_price(ServiceType.SINGLE_APPEAL).final_amount == Decimal("2.00")
        assert calculate_price(ServiceType.HPI_CHECK).final_amount == Decimal("5.00")
        assert calculate_price(ServiceType.ANNUAL_SUBSCRIPTION).final_amount == Decimal("25.00")

    def test_bulk_hpi_is_per_vehicle(self):
        quote = calculate_price(ServiceType.BULK_HPI, quantity=3)
        assert quote.original_amount == Decimal("15.00")
        assert quote.discount_amount == Decimal("0.00")

    def test_promo_applied_to_order_total(self, make_promo):
        promo = make_promo(discount_type=DiscountType.FIXED_AMOUNT.value, discount_value=Decimal("4.00"))
        quote = calculate_price(ServiceType.BULK_HPI, quantity=2, promo=promo)
        assert quote.original_amount == Decimal("10.00")
        assert quote.final_amount == Decimal("6.00")
        assert quote.to_dict()["discount"]["amount"] == 4.0

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValueError):
            calculate_price(ServiceType.HPI_CHECK, quantity=0)


class TestConfirmPayment:
    def test_hpi_purchase_adds_credits_once(self, db, clock, make_user):
        user = make_user(hpi_credits=1)
        payment = create_payment(db, user, calculate_price(ServiceType.BULK_HPI, quantity=3), "3 HPI checks")

        with patch("app.services.payments.send_payment_receipt_email") as send_receipt:
            assert confirm_payment(db, payment.id, "pi_123", clock=clock) is not None
            assert confirm_payment(db, payment.id, "pi_123", clock=clock) is None

        db.refresh(user)
        db.refresh(payment)
        assert user.hpi_credits == 4
        assert payment.status == PaymentStatus.COMPLETED.value
        assert payment.stripe_payment_intent_id == "pi_123"
        assert payment.completed_at == clock()
        send_receipt.assert_called_once()

    def test_annual_subscription_starts_now_for_365_days(self, db, clock, make_user):
        user = make_user()
        payment = create_payment(db, user, calculate_price(ServiceType.ANNUAL_SUBSCRIPTION), "Annual Plan")

        confirm_payment(db, payment.id, clock=clock)

        db.refresh(user)
        assert user.subscription_type == SubscriptionType.ANNUAL_PLAN.value
        assert user.subscription_start == clock()
        assert user.subscription_end == clock() + timedelta(days=365)
        assert user.is_active is True

    def test_single_appeal_has_no_end_date(self, db, clock, make_user):
        user = make_user()
        payment = create_payment(db, user, calculate_price(ServiceType.SINGLE_APPEAL), "Single Appeal")

        confirm_payment(db, payment.id, clock=clock)

        db.refresh(user)
        assert user.subscription_type == SubscriptionType.SINGLE_APPEAL.value
        assert user.subscription_end is None

    def test_promo_usage_recorded_on_completion_only(self, db, clock, make_user, make_promo):
        user = make_user()
        promo = make_promo()
        quote = calculate_price(ServiceType.HPI_CHECK, promo=promo)
        payment = create_payment(db, user, quote, "HPI Check")
        promo_codes = PromoCodeRepository(db)

        assert promo_codes.count_usages(promo.id) == 0
        confirm_payment(db, payment.id, clock=clock)
        confirm_payment(db, payment.id, clock=clock)

        assert promo_codes.count_usages(promo.id) == 1
        assert promo_codes.count_user_usages(promo.id, user.id) == 1

    def test_per_user_limit_rechecked_when_two_checkouts_complete(self, db, clock, make_user, make_promo):
        """Both checkouts passed validation while pending; only the first completion uses the code."""
        user = make_user()
        promo = make_promo(per_user_limit=1)
        first = create_payment(db, user, calculate_price(ServiceType.HPI_CHECK, promo=promo), "HPI Check")
        second = create_payment(db, user, calculate_price(ServiceType.HPI_CHECK, promo=promo), "HPI Check")

        assert confirm_payment(db, first.id, clock=clock) is not None
        assert confirm_payment(db, second.id, clock=clock) is not None

        promo_codes = PromoCodeRepository(db)
        assert promo_codes.count_user_usages(promo.id, user.id) == 1
        db.refresh(user)
        assert user.hpi_credits == 2

    def test_global_usage_limit_rechecked_on_completion(self, db, clock, make_user, make_promo):
        buyer_a, buyer_b = make_user(), make_user()
        promo = make_promo(usage_limit=1)
        payment_a = create_payment(db, buyer_a, calculate_price(ServiceType.HPI_CHECK, promo=promo), "HPI Check")
        payment_b = create_payment(db, buyer_b, calculate_price(ServiceType.HPI_CHECK, promo=promo), "HPI Check")

        confirm_payment(db, payment_b.id, clock=clock)
        confirm_payment(db, payment_a.id, clock=clock)

        promo_codes = PromoCodeRepository(db)
        assert promo_codes.count_usages(promo.id) == 1
        assert promo_codes.count_user_usages(promo.id, buyer_b.id) == 1
        assert promo_codes.count_user_usages(promo.id, buyer_a.id) == 0

    def test_unknown_payment(self, db, clock):
        assert confirm_payment(db, 999, clock=clock) is None


class TestClosePending:
    def test_cancel_only_own_pending_payment(self, db, make_user):
        owner, other = make_user(), make_user()
        payment = create_payment(db, owner, calculate_price(ServiceType.HPI_CHECK), "HPI Check")

        assert cancel_payment(db, payment.id, other.id) is False
        assert cancel_payment(db, payment.id, owner.id) is True
        assert cancel_payment(db, payment.id, owner.id) is False

        db.refresh(payment)
        assert payment.status == PaymentStatus.CANCELLED.value

    def test_cancelled_payment_is_never_fulfilled(self, db, clock, make_user):
        user = make_user()
        payment = create_payment(db, user, calculate_price(ServiceType.HPI_CHECK), "HPI Check")
        cancel_payment(db, payment.id, user.id)

        assert confirm_payment(db, payment.id, clock=clock) is None
        db.refresh(user)
        assert user.hpi_credits == 0

    def test_fail_payment(self, db, make_user):
        user = make_user()
        payment = create_payment(db, user, calculate_price(ServiceType.HPI_CHECK), "HPI Check")

        assert fail_payment(db, payment.id) is True
        assert db.query(Payment).filter(Payment.id == payment.id).one().status == PaymentStatus.FAILED.value
