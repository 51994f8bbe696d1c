"""
Tests for appeal submission, plan caps and outcome reporting over HTTP.
"""
from datetime import timedelta

from app.core.pricing import SubscriptionType

APPEAL = {
    "ticket_number": "PCN-0001",
    "vehicle_registration": "AB12 CDE",
    "fine_amount": "70.00",
    "issue_date": "2026-02-20T09:30:00",
    "due_date": "2026-03-20T00:00:00",
    "location": "High Street, Leeds",
    "reason": "Signage unclear",
    "description": "The restriction signs were hidden behind scaffolding.",
}


class TestCreateAppeal:
    def test_trial_user_gets_one_appeal(self, client, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)

        first = client.post("/api/appeals", headers=headers, json=APPEAL)
        second = client.post("/api/appeals", headers=headers, json={**APPEAL, "ticket_number": "PCN-0002"})

        assert first.status_code == 201
        assert first.json()["vehicle_registration"] == "AB12CDE"
        assert first.json()["status"] == "SUBMITTED"
        assert second.status_code == 403
        assert second.json()["detail"]["error"] == "TrialAlreadyUsed"

    def test_usage_check_then_appeal_for_same_plate(self, client, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)

        check = client.post("/api/user/usage", headers=headers,
                            json={"service": "appeal", "data": {"registration": "AB12CDE"}})
        appeal = client.post("/api/appeals", headers=headers, json=APPEAL)
        another = client.post("/api/appeals", headers=headers, json={**APPEAL, "ticket_number": "PCN-0002"})

        assert check.json()["access"] == "granted"
        assert check.json()["reason"] == "trial_used"
        assert appeal.status_code == 201
        assert appeal.json()["vehicle_registration"] == "AB12CDE"
        assert another.status_code == 403
        assert another.json()["detail"]["error"] == "TrialAlreadyUsed"

    def test_usage_check_then_appeal_for_other_plate(self, client, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)
        client.post("/api/user/usage", headers=headers,
                    json={"service": "appeal", "data": {"registration": "AB12CDE"}})

        response = client.post("/api/appeals", headers=headers, json={**APPEAL, "vehicle_registration": "XY99 ZZZ"})

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "payment_required"
        assert response.json()["detail"]["trial_used_for"] == "AB12CDE"
        assert response.json()["detail"]["message"] == "Payment required. Trial was used for another registration."

    def test_expired_trial_window(self, client, clock, make_user, auth_headers):
        user = make_user(subscription_end=clock() - timedelta(seconds=1))

        response = client.post("/api/appeals", headers=auth_headers(user), json=APPEAL)

        assert response.status_code == 403
        assert response.json()["detail"]["error"] == "SubscriptionExpired"

    def test_used_trial_needs_payment(self, client, make_user, auth_headers):
        user = make_user(appeal_trial_used=True, appeal_trial_reg="OLD1PLT")

        response = client.post("/api/appeals", headers=auth_headers(user), json=APPEAL)

        assert response.status_code == 403
        assert response.json()["detail"]["reason"] == "payment_required"
        assert response.json()["detail"]["trial_used_for"] == "OLD1PLT"

    def test_annual_plan_is_unlimited(self, client, clock, make_user, auth_headers):
        user = make_user(subscription_type=SubscriptionType.ANNUAL_PLAN.value,
                         subscription_end=clock() + timedelta(days=200))
        headers = auth_headers(user)

        for i in range(3):
            response = client.post("/api/appeals", headers=headers, json={**APPEAL, "ticket_number": f"PCN-{i}"})
            assert response.status_code == 201

        assert len(client.get("/api/appeals", headers=headers).json()) == 3

    def test_appeals_are_private(self, client, make_user, auth_headers):
        owner, other = make_user(), make_user()
        client.post("/api/appeals", headers=auth_headers(owner), json=APPEAL)
        assert client.get("/api/appeals", headers=auth_headers(other)).json() == []


class TestOutcome:
    def test_report_outcome_updates_status_and_stats(self, client, clock, make_user, auth_headers):
        user = make_user(subscription_type=SubscriptionType.ANNUAL_PLAN.value,
                         subscription_end=clock() + timedelta(days=200))
        headers = auth_headers(user)
        won = client.post("/api/appeals", headers=headers, json=APPEAL).json()
        lost = client.post("/api/appeals", headers=headers, json={**APPEAL, "ticket_number": "PCN-0002"}).json()
        client.post("/api/appeals", headers=headers, json={**APPEAL, "ticket_number": "PCN-0003"})

        response = client.post("/api/appeals/outcome", headers=headers,
                               json={"appeal_id": won["id"], "outcome": "successful", "notes": "Cancelled"})
        client.post("/api/appeals/outcome", headers=headers,
                    json={"appeal_id": lost["id"], "outcome": "unsuccessful"})

        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"
        assert response.json()["user_reported_outcome"] == "successful"
        stats = client.get("/api/appeals/outcome", headers=headers).json()
        assert stats == {"total": 3, "successful": 1, "unsuccessful": 1, "pending": 1, "success_rate": 50.0}

    def test_cannot_report_on_someone_elses_appeal(self, client, make_user, auth_headers):
        owner, other = make_user(), make_user()
        appeal = client.post("/api/appeals", headers=auth_headers(owner), json=APPEAL).json()

        response = client.post("/api/appeals/outcome", headers=auth_headers(other),
                               json={"appeal_id": appeal["id"], "outcome": "successful"})

        assert response.status_code == 404
