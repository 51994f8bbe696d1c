"""
Tests for promo code validation and the admin promo code endpoints.
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.models.payment import Payment, PaymentStatus
from app.models.promo_usage import PromoUsage


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@clearride.ai")


def _new_code(clock, **overrides):
    body = {
        "code": "LAUNCH25",
        "name": "Launch offer",
        "discount_type": "PERCENTAGE",
        "discount_value": "25",
        "max_discount": "5.00",
        "valid_from": clock().isoformat(),
        "valid_until": (clock() + timedelta(days=30)).isoformat(),
    }
    body.update(overrides)
    return body


class TestValidateEndpoint:
    def test_valid_code(self, client, make_user, make_promo, auth_headers):
        user = make_user()
        make_promo(code="HPI50", discount_value=Decimal("50"), applicable_for="HPI_CHECK")

        response = client.post("/api/promo-codes/validate", headers=auth_headers(user), json={
            "code": "hpi50", "order_value": "5.00", "service_type": "HPI_CHECK",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["discount"] == {"amount": 2.5, "original_amount": 5.0, "final_amount": 2.5, "savings": 2.5}

    def test_rejection_is_not_an_http_error(self, client, make_user, make_promo, auth_headers):
        user = make_user()
        make_promo(applicable_for="HPI_CHECK")

        response = client.post("/api/promo-codes/validate", headers=auth_headers(user), json={
            "code": "SAVE10", "order_value": "2.00", "service_type": "SINGLE_APPEAL",
        })

        assert response.status_code == 200
        assert response.json()["valid"] is False
        assert response.json()["error"] == "ServiceMismatch"

    def test_unknown_service_type_rejected(self, client, make_user, auth_headers):
        user = make_user()
        response = client.post("/api/promo-codes/validate", headers=auth_headers(user), json={
            "code": "SAVE10", "order_value": "2.00", "service_type": "MOT",
        })
        assert response.status_code == 422


class TestAdminPromoCodes:
    def test_requires_admin(self, client, make_user, auth_headers):
        user = make_user()
        assert client.get("/api/admin/promo-codes", headers=auth_headers(user)).status_code == 401

    def test_create_and_get(self, client, clock, admin, auth_headers):
        headers = auth_headers(admin)

        created = client.post("/api/admin/promo-codes", headers=headers, json=_new_code(clock))

        assert created.status_code == 201
        data = created.json()
        assert data["code"] == "LAUNCH25"
        assert data["applicable_for"] == "HPI_CHECK,ANNUAL_SUBSCRIPTION"
        assert data["usage_count"] == 0

        fetched = client.get(f"/api/admin/promo-codes/{data['id']}", headers=headers)
        assert fetched.json()["usages"] == []

    def test_code_format_enforced(self, client, clock, admin, auth_headers):
        response = client.post("/api/admin/promo-codes", headers=auth_headers(admin),
                               json=_new_code(clock, code="no spaces!"))
        assert response.status_code == 422

    def test_duplicate_code(self, client, clock, admin, auth_headers):
        headers = auth_headers(admin)
        client.post("/api/admin/promo-codes", headers=headers, json=_new_code(clock))

        response = client.post("/api/admin/promo-codes", headers=headers, json=_new_code(clock))

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Promo code already exists"

    def test_percentage_over_100(self, client, clock, admin, auth_headers):
        response = client.post("/api/admin/promo-codes", headers=auth_headers(admin),
                               json=_new_code(clock, discount_value="150"))
        assert response.status_code == 400

    def test_list_search_and_pagination(self, client, clock, admin, auth_headers, make_promo):
        make_promo(code="SPRING10", name="Spring")
        make_promo(code="SUMMER10", name="Summer")
        make_promo(code="OLD10", name="Retired", is_active=False)
        headers = auth_headers(admin)

        searched = client.get("/api/admin/promo-codes?search=spring", headers=headers).json()
        active = client.get("/api/admin/promo-codes?active=true", headers=headers).json()
        paged = client.get("/api/admin/promo-codes?page=2&limit=2", headers=headers).json()

        assert [p["code"] for p in searched["promo_codes"]] == ["SPRING10"]
        assert {p["code"] for p in active["promo_codes"]} == {"SPRING10", "SUMMER10"}
        assert paged["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
        assert len(paged["promo_codes"]) == 1

    def test_update_keeps_code_and_checks_dates(self, client, clock, admin, auth_headers, make_promo):
        promo = make_promo()
        headers = auth_headers(admin)

        ok = client.put(f"/api/admin/promo-codes/{promo.id}", headers=headers,
                        json={"is_active": False, "max_discount": None})
        bad = client.put(f"/api/admin/promo-codes/{promo.id}", headers=headers,
                         json={"valid_until": (clock() - timedelta(days=5)).isoformat()})

        assert ok.status_code == 200
        assert ok.json()["is_active"] is False
        assert ok.json()["code"] == "SAVE10"
        assert bad.status_code == 400

    def test_used_code_cannot_be_deleted(self, client, db, admin, auth_headers, make_user, make_promo):
        promo = make_promo()
        buyer = make_user()
        payment = Payment(user_id=buyer.id, type="HPI_CHECK", description="HPI Check", quantity=1,
                          amount=Decimal("5.00"), discount_amount=Decimal("0.50"), final_amount=Decimal("4.50"),
                          status=PaymentStatus.COMPLETED.value, promo_code_id=promo.id)
        db.add(payment)
        db.flush()
        db.add(PromoUsage(promo_code_id=promo.id, user_id=buyer.id, payment_id=payment.id,
                          discount_applied=Decimal("0.50")))
        db.commit()
        promo_id = promo.id

        response = client.delete(f"/api/admin/promo-codes/{promo_id}", headers=auth_headers(admin))

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "PromoCodeInUse"
        detail = client.get(f"/api/admin/promo-codes/{promo_id}", headers=auth_headers(admin)).json()
        assert detail["usage_count"] == 1
        assert detail["usages"][0]["email"] == buyer.email

    def test_delete_unused(self, client, admin, auth_headers, make_promo):
        promo = make_promo()
        headers = auth_headers(admin)

        assert client.delete(f"/api/admin/promo-codes/{promo.id}", headers=headers).status_code == 200
        assert client.get(f"/api/admin/promo-codes/{promo.id}", headers=headers).status_code == 404
