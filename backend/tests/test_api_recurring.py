"""Tests for recurring transaction API endpoints."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from recurwatch.services.detection.cadence import add_months


@pytest.fixture
def subscription_history(add_transactions, sample_merchant, sample_account, sample_category):
    """Four monthly charges, the latest a few days ago."""
    last = date.today() - timedelta(days=5)
    last = last.replace(day=min(last.day, 28))
    dates = [add_months(last, -k) for k in range(3, -1, -1)]
    return add_transactions(dates, [9.99] * 4, sample_merchant,
                            account=sample_account, category=sample_category)


class TestDetectEndpoint:
    """Test POST /recurring/detect."""

    def test_detect_saves_patterns(self, client, subscription_history, sample_merchant):
        response = client.post("/api/v1/recurring/detect")
        assert response.status_code == 200
        data = response.json()
        assert data["total_found"] == 1
        assert data["saved"] == 1
        assert data["skipped"] == 0
        assert data["errors"] == 0

        pattern = data["detected"][0]
        assert pattern["merchant_group_id"] == sample_merchant.id
        assert pattern["merchant_name"] == "Netflix"
        assert pattern["frequency"] == "monthly"
        assert pattern["transaction_type"] == "expense"
        assert pattern["expected_amount"] == pytest.approx(9.99)
        assert pattern["occurrence_count"] == 4
        assert pattern["transaction_ids"] == [t.id for t in subscription_history]

    def test_detect_twice_skips(self, client, subscription_history):
        client.post("/api/v1/recurring/detect")
        response = client.post("/api/v1/recurring/detect")

        data = response.json()
        assert data["total_found"] == 1
        assert data["saved"] == 0
        assert data["skipped"] == 1

    def test_detect_without_save(self, client, subscription_history):
        response = client.post("/api/v1/recurring/detect", params={"save": False})

        assert response.status_code == 200
        assert response.json()["total_found"] == 1
        assert response.json()["saved"] == 0
        assert client.get("/api/v1/recurring").json() == []

    def test_detect_empty_ledger(self, client):
        response = client.post("/api/v1/recurring/detect")

        assert response.status_code == 200
        assert response.json()["detected"] == []
        assert response.json()["total_found"] == 0

    def test_invalid_lookback(self, client):
        response = client.post("/api/v1/recurring/detect", params={"lookback_months": 0})
        assert response.status_code == 422


class TestRecurringEndpoints:
    """Test listing, reading and updating persisted patterns."""

    @pytest.fixture
    def detected_id(self, client, subscription_history):
        client.post("/api/v1/recurring/detect")
        return client.get("/api/v1/recurring").json()[0]["id"]

    def test_list(self, client, detected_id):
        response = client.get("/api/v1/recurring")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["is_confirmed"] is False
        assert data[0]["is_active"] is True
        assert data[0]["detection_method"] == "automatic"
        assert Decimal(str(data[0]["expected_amount"])) == Decimal("9.99")

    def test_list_filters(self, client, detected_id):
        assert len(client.get("/api/v1/recurring", params={"is_active": True}).json()) == 1
        assert client.get("/api/v1/recurring", params={"is_confirmed": True}).json() == []

    def test_get(self, client, detected_id, sample_category):
        response = client.get(f"/api/v1/recurring/{detected_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == detected_id
        assert data["category_id"] == sample_category.id
        assert data["reminder_enabled"] is True
        assert data["reminder_days_before"] == 2

    def test_get_not_found(self, client):
        response = client.get("/api/v1/recurring/nonexistent-id")
        assert response.status_code == 404

    def test_confirm(self, client, detected_id):
        response = client.patch(f"/api/v1/recurring/{detected_id}", json={"is_confirmed": True})
        assert response.status_code == 200
        assert response.json()["is_confirmed"] is True
        assert response.json()["is_active"] is True

    def test_deactivate_allows_redetection(self, client, detected_id):
        client.patch(f"/api/v1/recurring/{detected_id}", json={"is_active": False})

        response = client.post("/api/v1/recurring/detect")

        assert response.json()["saved"] == 1
        assert len(client.get("/api/v1/recurring").json()) == 2

    def test_update_reminder_out_of_range(self, client, detected_id):
        response = client.patch(f"/api/v1/recurring/{detected_id}", json={"reminder_days_before": 90})
        assert response.status_code == 422

    def test_update_not_found(self, client):
        response = client.patch("/api/v1/recurring/nonexistent-id", json={"is_confirmed": True})
        assert response.status_code == 404

    def test_matched_transactions(self, client, detected_id, subscription_history):
        response = client.get(f"/api/v1/recurring/{detected_id}/transactions")
        assert response.status_code == 200
        data = response.json()
        assert data["recurring_transaction_id"] == detected_id
        assert data["transaction_ids"] == [t.id for t in subscription_history]

    def test_matched_transactions_not_found(self, client):
        response = client.get("/api/v1/recurring/nonexistent-id/transactions")
        assert response.status_code == 404

    def test_reactivate_conflicting_record(self, client, detected_id):
        client.patch(f"/api/v1/recurring/{detected_id}", json={"is_active": False})
        client.post("/api/v1/recurring/detect")

        response = client.patch(f"/api/v1/recurring/{detected_id}", json={"is_active": True})

        assert response.status_code == 409
        assert client.get(f"/api/v1/recurring/{detected_id}").json()["is_active"] is False
        assert len(client.get("/api/v1/recurring", params={"is_active": True}).json()) == 1

    def test_edit_schedule_and_amount(self, client, detected_id):
        response = client.patch(f"/api/v1/recurring/{detected_id}", json={
            "frequency": "yearly",
            "day_of_month": 12,
            "expected_amount": "-119.88",
            "next_expected_date": "2030-01-12",
            "notes": "Switched to the annual plan",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["frequency"] == "yearly"
        assert data["day_of_month"] == 12
        assert Decimal(str(data["expected_amount"])) == Decimal("119.88")
        assert data["next_expected_date"] == "2030-01-12"
        assert data["notes"] == "Switched to the annual plan"

    def test_update_rejects_null_for_required_field(self, client, detected_id):
        response = client.patch(f"/api/v1/recurring/{detected_id}", json={"expected_amount": None})
        assert response.status_code == 422

    def test_delete(self, client, detected_id, subscription_history):
        response = client.delete(f"/api/v1/recurring/{detected_id}")
        assert response.status_code == 204

        assert client.get(f"/api/v1/recurring/{detected_id}").status_code == 404
        assert client.get("/api/v1/recurring").json() == []

    def test_delete_allows_redetection(self, client, detected_id):
        client.delete(f"/api/v1/recurring/{detected_id}")

        response = client.post("/api/v1/recurring/detect")

        assert response.json()["saved"] == 1

    def test_delete_not_found(self, client):
        response = client.delete("/api/v1/recurring/nonexistent-id")
        assert response.status_code == 404


class TestManualCreate:
    """Test POST /recurring."""

    def test_create(self, client, sample_account):
        response = client.post("/api/v1/recurring", json={
            "merchant_name": "Landlord",
            "frequency": "monthly",
            "day_of_month": 1,
            "expected_amount": "-1500.00",
            "transaction_type": "expense",
            "account_id": sample_account.id,
            "next_expected_date": "2030-02-01",
            "notes": "Rent",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["detection_method"] == "manual"
        assert data["merchant_group_id"] is None
        assert Decimal(str(data["expected_amount"])) == Decimal("1500.00")
        assert data["interval"] == 1
        assert data["is_active"] is True
        assert data["is_confirmed"] is False
        assert data["reminder_days_before"] == 2
        assert data["occurrence_count"] == 0
        assert data["notes"] == "Rent"
        assert client.get(f"/api/v1/recurring/{data['id']}").status_code == 200

    def test_create_conflicts_with_detected(self, client, subscription_history, sample_merchant):
        client.post("/api/v1/recurring/detect")

        response = client.post("/api/v1/recurring", json={
            "merchant_group_id": sample_merchant.id,
            "merchant_name": "Netflix",
            "frequency": "monthly",
            "expected_amount": "15.49",
            "transaction_type": "expense",
        })

        assert response.status_code == 409
        assert len(client.get("/api/v1/recurring").json()) == 1

    def test_create_validation(self, client):
        response = client.post("/api/v1/recurring", json={
            "merchant_name": "Gym",
            "frequency": "fortnightly",
            "expected_amount": "30",
            "transaction_type": "expense",
        })
        assert response.status_code == 422

        response = client.post("/api/v1/recurring", json={
            "merchant_name": "Gym",
            "frequency": "monthly",
            "day_of_month": 32,
            "expected_amount": "30",
            "transaction_type": "expense",
        })
        assert response.status_code == 422
