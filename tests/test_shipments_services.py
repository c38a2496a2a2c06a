"""
domains/shipments/services.py 테스트 (반영/다음 조회 시각/failover/등록)
"""

from datetime import timedelta

from django.db.models import QuerySet
from django.utils import timezone

import pytest

from domains.shipments.models import NEVER_CHECK_AGAIN, CanonicalStatus, Shipment
from domains.shipments.services import (
    ShipmentNotFound,
    apply_observation,
    compute_next_check,
    reconcile_shipment,
    refresh_tracking,
    register_shipment,
)

from factories import make_observation


class TestComputeNextCheck:
    def test_terminal_is_never_checked_again(self):
        now = timezone.now()
        assert compute_next_check(CanonicalStatus.DELIVERED, now) == NEVER_CHECK_AGAIN
        assert compute_next_check(CanonicalStatus.RTO, now) == NEVER_CHECK_AGAIN

    def test_intervals(self):
        now = timezone.now()
        assert compute_next_check(CanonicalStatus.OUT_FOR_DELIVERY, now) == now + timedelta(hours=1)
        assert compute_next_check(CanonicalStatus.IN_TRANSIT, now) == now + timedelta(hours=12)
        assert compute_next_check(CanonicalStatus.PICKED_UP, now) == now + timedelta(hours=12)
        assert compute_next_check(CanonicalStatus.UNKNOWN, now) == now + timedelta(hours=24)
        assert compute_next_check(None, now) == now + timedelta(hours=24)

    def test_ndr_escalates_after_a_day(self):
        now = timezone.now()
        assert compute_next_check(CanonicalStatus.NDR, now) == now + timedelta(hours=6)
        assert compute_next_check(
            CanonicalStatus.NDR, now, first_ndr_at=now - timedelta(hours=23)
        ) == now + timedelta(hours=6)
        assert compute_next_check(
            CanonicalStatus.NDR, now, first_ndr_at=now - timedelta(hours=24)
        ) == now + timedelta(hours=2)


@pytest.mark.django_db
class TestApplyObservation:
    def test_overwrites_display_fields(self):
        created = Shipment.objects.create(tracking_number="AWB1")
        now = timezone.now()
        obs = make_observation("AWB1", "Out for delivery", provider="bluedart", courier_name="Blue Dart")

        assert apply_observation(obs, now=now) is True

        s = Shipment.objects.get(pk=created.pk)
        assert s.canonical_status == CanonicalStatus.OUT_FOR_DELIVERY
        assert s.raw_status_text == "Out for delivery"
        assert s.tracking_source == "bluedart"
        assert s.actual_courier == "Blue Dart"
        assert s.scan_history == obs.scans
        assert s.last_checked_at == now
        assert s.next_check_at == now + timedelta(hours=1)
        assert s.delivered_at is None
        assert s.delivery_confirmed is False

    def test_unknown_tracking_number_returns_false(self):
        assert apply_observation(make_observation("NOPE")) is False

    def test_out_for_delivery_then_delivered_then_late_scan(self):
        """배송완료 시각/확정 플래그는 한 번 정해지면 늦게 온 스캔에 흔들리지 않는다"""
        Shipment.objects.create(tracking_number="AWB1")
        t0 = timezone.now()
        t1 = t0 + timedelta(hours=2)
        t2 = t0 + timedelta(hours=5)

        apply_observation(make_observation("AWB1", "Out for delivery"), now=t0)
        apply_observation(make_observation("AWB1", "Delivered"), now=t1)

        s = Shipment.objects.get(tracking_number="AWB1")
        assert s.canonical_status == CanonicalStatus.DELIVERED
        assert s.delivered_at == t1
        assert s.delivery_confirmed is True
        assert s.next_check_at == NEVER_CHECK_AGAIN

        # 늦게 도착한 중간 스캔
        apply_observation(make_observation("AWB1", "In Transit"), now=t2)
        s.refresh_from_db()
        assert s.canonical_status == CanonicalStatus.IN_TRANSIT
        assert s.delivered_at == t1
        assert s.delivery_confirmed is True
        assert s.next_check_at == NEVER_CHECK_AGAIN
        assert s.last_checked_at == t2

        # 다시 Delivered 가 와도 최초 배송완료 시각 유지
        apply_observation(make_observation("AWB1", "Delivered"), now=t2)
        s.refresh_from_db()
        assert s.delivered_at == t1

    def test_first_ndr_at_is_sticky_and_escalates(self):
        Shipment.objects.create(tracking_number="AWB1")
        t0 = timezone.now()

        apply_observation(make_observation("AWB1", "Undelivered"), now=t0)
        s = Shipment.objects.get(tracking_number="AWB1")
        assert s.first_ndr_at == t0
        assert s.next_check_at == t0 + timedelta(hours=6)

        t1 = t0 + timedelta(hours=25)
        apply_observation(make_observation("AWB1", "Delivery failed"), now=t1)
        s.refresh_from_db()
        assert s.first_ndr_at == t0
        assert s.next_check_at == t1 + timedelta(hours=2)

        # NDR 해소 후에도 첫 NDR 시각은 그대로
        t2 = t1 + timedelta(hours=1)
        apply_observation(make_observation("AWB1", "Out for delivery"), now=t2)
        s.refresh_from_db()
        assert s.first_ndr_at == t0
        assert s.next_check_at == t2 + timedelta(hours=1)

    def test_rto_is_terminal(self):
        Shipment.objects.create(tracking_number="AWB1")
        now = timezone.now()
        apply_observation(make_observation("AWB1", "RTO Delivered"), now=now)

        s = Shipment.objects.get(tracking_number="AWB1")
        assert s.canonical_status == CanonicalStatus.RTO
        assert s.next_check_at == NEVER_CHECK_AGAIN
        assert s.delivered_at is None
        assert s.delivery_confirmed is False
        assert not Shipment.objects.due(now + timedelta(days=365)).exists()


@pytest.mark.django_db
class TestReconcileShipment:
    def test_falls_over_to_second_provider(self, install_providers):
        Shipment.objects.create(tracking_number="AWB1")
        calls = install_providers(shiprocket={}, bluedart={"AWB1": "In Transit"})

        obs = reconcile_shipment("awb1")

        assert obs.provider == "bluedart"
        assert calls["shiprocket"] == [["AWB1"]]
        assert calls["bluedart"] == [["AWB1"]]
        s = Shipment.objects.get(tracking_number="AWB1")
        assert s.tracking_source == "bluedart"
        assert s.canonical_status == CanonicalStatus.IN_TRANSIT

    def test_last_source_is_tried_first(self, install_providers):
        Shipment.objects.create(tracking_number="AWB1", tracking_source="bluedart")
        calls = install_providers(shiprocket={"AWB1": "Delivered"}, bluedart={"AWB1": "Out for delivery"})

        obs = reconcile_shipment("AWB1")

        assert obs.provider == "bluedart"
        assert calls["shiprocket"] == []

    def test_total_failure_leaves_record_untouched(self, install_providers):
        s = Shipment.objects.create(tracking_number="AWB1")
        before = Shipment.objects.filter(pk=s.pk).values().get()
        install_providers(shiprocket={"AWB1": RuntimeError("boom")}, bluedart={})

        assert reconcile_shipment("AWB1") is None

        after = Shipment.objects.filter(pk=s.pk).values().get()
        assert after == before

    def test_refresh_tracking_not_found(self, install_providers):
        install_providers(shiprocket={"AWB1": "Delivered"})
        with pytest.raises(ShipmentNotFound):
            refresh_tracking("AWB1")

    def test_refresh_tracking_when_no_provider_answers(self, install_providers):
        Shipment.objects.create(tracking_number="AWB1")
        install_providers()
        with pytest.raises(ShipmentNotFound):
            refresh_tracking("AWB1")

    def test_refresh_tracking_returns_updated_row(self, install_providers):
        Shipment.objects.create(tracking_number="AWB1")
        install_providers(shiprocket={"AWB1": "Delivered"})

        s = refresh_tracking(" awb1 ")

        assert s.canonical_status == CanonicalStatus.DELIVERED
        assert s.delivery_confirmed is True


@pytest.mark.django_db
class TestRegisterShipment:
    def test_creates_with_normalized_links(self):
        s = register_shipment(
            tracking_number=" awb 77 ",
            order_reference="1001",
            customer_mobile="98765 43210",
            customer_email="Asha@Example.com",
        )
        assert s.tracking_number == "AWB77"
        assert s.order_reference == "#1001"
        assert s.customer_mobile == "+919876543210"
        assert s.customer_email == "asha@example.com"
        assert s.canonical_status is None
        assert s.next_check_at <= timezone.now()

    def test_is_idempotent_and_keeps_status(self):
        register_shipment(tracking_number="AWB77", order_reference="#1001")
        apply_observation(make_observation("AWB77", "Delivered"))

        s = register_shipment(tracking_number="AWB77", customer_email="new@example.com")

        assert Shipment.objects.count() == 1
        assert s.order_reference == "#1001"
        assert s.customer_email == "new@example.com"
        assert s.canonical_status == CanonicalStatus.DELIVERED
        assert s.delivery_confirmed is True

    def test_concurrent_create_returns_existing_row(self, monkeypatch):
        """다른 수집기가 get 과 create 사이에 같은 운송장을 먼저 만든 경우"""
        Shipment.objects.create(tracking_number="AWB77", order_reference="#1001")
        real_get = QuerySet.get
        misses = []

        def racing_get(self, *args, **kwargs):
            if not misses:
                misses.append(1)
                raise Shipment.DoesNotExist
            return real_get(self, *args, **kwargs)

        monkeypatch.setattr(QuerySet, "get", racing_get)

        s = register_shipment(tracking_number="AWB77", customer_email="late@example.com")

        assert misses == [1]
        assert Shipment.objects.count() == 1
        assert s.order_reference == "#1001"
        assert s.customer_email == "late@example.com"

    def test_requires_tracking_number(self):
        with pytest.raises(ValueError):
            register_shipment(tracking_number="  ")
