import pytest

from domains.shipments.models import CanonicalStatus

URL = "/api/v1/lookup/"
PHONE = "+919876543210"


@pytest.mark.django_db
class TestCustomerLookupAPI:
    def test_active_shipments_are_public_safe(self, api_client, shipment_factory):
        scans = [{"at": f"2025-10-{d:02d}T10:00:00+05:30", "status": f"scan {d}", "location": "HUB"} for d in range(1, 8)]
        shipment_factory(
            tracking_number="AWB1",
            tracking_source="shiprocket",
            actual_courier="Delhivery",
            customer_mobile=PHONE,
            customer_email="asha@example.com",
            canonical_status=CanonicalStatus.NDR,
            raw_status_text="Consignee unavailable",
            scan_history=scans,
        )

        r = api_client.post(URL, {"phone": "98765-43210"}, format="json")

        assert r.status_code == 200, r.content
        body = r.json()
        assert body["found"] is True
        assert body["mode"] == "ACTIVE_ONLY"
        row = body["shipments"][0]
        assert row["tracking_number"] == "AWB1"
        assert row["courier"] == "Delhivery"
        assert row["status"] == "NDR"
        assert row["status_label"] == "Delivery Attempt Failed"
        assert row["tracking_url"] == "https://shiprocket.co/tracking/AWB1"
        # 최신 5건, 최신이 먼저
        assert [s["status"] for s in row["scans"]] == ["scan 7", "scan 6", "scan 5", "scan 4", "scan 3"]
        # 내부 연락처/운영 필드는 노출하지 않음
        for hidden in ("customer_mobile", "customer_email", "ops_note", "next_check_at"):
            assert hidden not in row

    def test_not_observed_yet(self, api_client, shipment_factory):
        shipment_factory(tracking_number="AWB1", customer_email="asha@example.com")

        row = api_client.post(URL, {"email": "Asha@Example.com"}, format="json").json()["shipments"][0]

        assert row["status"] is None
        assert row["status_label"] == "Awaiting update"
        assert row["tracking_url"] is None

    def test_not_found(self, api_client, db):
        r = api_client.post(URL, {"email": "nobody@example.com"}, format="json")
        assert r.status_code == 200
        assert r.json() == {"found": False, "mode": None, "message": "No orders found", "shipments": []}

    def test_identity_required(self, api_client, db):
        r = api_client.post(URL, {"order_reference": "#1001"}, format="json")
        assert r.status_code == 400
        assert "error" in r.json()

    def test_invalid_phone(self, api_client, db):
        r = api_client.post(URL, {"phone": "123"}, format="json")
        assert r.status_code == 400
        assert "error" in r.json()

    def test_identity_rate_limit(self, api_client, db):
        for i in range(10):
            r = api_client.post(URL, {"phone": PHONE}, format="json", REMOTE_ADDR=f"10.0.0.{i}")
            assert r.status_code == 200

        r = api_client.post(URL, {"phone": "09876543210"}, format="json", REMOTE_ADDR="10.0.1.1")

        assert r.status_code == 429
        body = r.json()
        assert body["retry_after"] >= 1
        assert "error" in body
        assert r["Retry-After"] == str(body["retry_after"])

    def test_ip_rate_limit(self, api_client, db, settings):
        settings.LOOKUP_IP_LIMIT = 3
        for i in range(3):
            api_client.post(URL, {"email": f"u{i}@example.com"}, format="json")
        r = api_client.post(URL, {"email": "u9@example.com"}, format="json")
        assert r.status_code == 429

    def test_forwarded_for_only_when_trusted(self, api_client, db, settings):
        settings.LOOKUP_IP_LIMIT = 1
        api_client.post(URL, {"email": "a@example.com"}, format="json", HTTP_X_FORWARDED_FOR="1.1.1.1")
        # 신뢰 안 함 → REMOTE_ADDR 기준으로 같은 IP
        r = api_client.post(URL, {"email": "b@example.com"}, format="json", HTTP_X_FORWARDED_FOR="2.2.2.2")
        assert r.status_code == 429

        settings.LOOKUP_TRUST_FORWARDED_FOR = True
        r = api_client.post(URL, {"email": "c@example.com"}, format="json", HTTP_X_FORWARDED_FOR="3.3.3.3, 10.0.0.1")
        assert r.status_code == 200
