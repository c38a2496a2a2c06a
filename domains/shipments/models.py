from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

from django.db import models
from django.utils import timezone

# 종결 상태(배송완료/반송) 운송장은 이 시각으로 고정 → 스케줄링 대상에서 영구 제외
NEVER_CHECK_AGAIN = datetime(9999, 12, 31, tzinfo=dt_timezone.utc)


class CanonicalStatus(models.TextChoices):
    PICKED_UP = "PICKED_UP", "Picked Up"
    IN_TRANSIT = "IN_TRANSIT", "In Transit"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY", "Out For Delivery"
    NDR = "NDR", "Delivery Attempt Failed"
    DELIVERED = "DELIVERED", "Delivered"
    RTO = "RTO", "Returned To Origin"
    CANCELLED = "CANCELLED", "Cancelled"
    UNKNOWN = "UNKNOWN", "Unknown"


TERMINAL_STATUSES = (CanonicalStatus.DELIVERED, CanonicalStatus.RTO)


class TrackingSource(models.TextChoices):
    SHIPROCKET = "shiprocket", "Shiprocket"
    BLUEDART = "bluedart", "Blue Dart"
    UNKNOWN = "unknown", "Unknown"


def open_q() -> models.Q:
    """
    종결되지 않은 운송장 (아직 관측 전인 것 포함).
    표시용 canonical_status 는 배송완료 후 늦은 스캔으로 바뀔 수 있으므로
    delivery_confirmed / next_check_at 센티널도 함께 본다.
    """
    return (
        (models.Q(canonical_status__isnull=True) | ~models.Q(canonical_status__in=TERMINAL_STATUSES))
        & models.Q(delivery_confirmed=False, next_check_at__lt=NEVER_CHECK_AGAIN)
    )


class ShipmentQuerySet(models.QuerySet):
    def open(self):
        return self.filter(open_q())

    def due(self, now=None):
        now = now or timezone.now()
        return self.open().filter(next_check_at__lte=now)


class Shipment(models.Model):
    tracking_number = models.CharField(max_length=64, unique=True)

    tracking_source = models.CharField(
        max_length=16,
        choices=TrackingSource.choices,
        default=TrackingSource.UNKNOWN,
    )
    actual_courier = models.CharField(max_length=80, blank=True, default="")
    raw_status_text = models.CharField(max_length=255, blank=True, default="")
    # null = 아직 한 번도 관측되지 않음
    canonical_status = models.CharField(
        max_length=24, choices=CanonicalStatus.choices, null=True, blank=True
    )
    scan_history = models.JSONField(default=list, blank=True)

    # sticky: 한 번 채워지면 다시 바뀌지 않음 (services.apply_observation 참고)
    first_ndr_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    delivery_confirmed = models.BooleanField(default=False)

    last_checked_at = models.DateTimeField(null=True, blank=True)
    next_check_at = models.DateTimeField(default=timezone.now, db_index=True)

    # 주문 연동 (외부 주문 수집기가 채움)
    order_reference = models.CharField(max_length=40, blank=True, default="", db_index=True)
    customer_mobile = models.CharField(max_length=20, blank=True, default="", db_index=True)
    customer_email = models.CharField(max_length=254, blank=True, default="", db_index=True)

    # 운영 메모
    ops_note = models.TextField(blank=True, default="")
    ops_resolved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ShipmentQuerySet.as_manager()

    class Meta:
        indexes = [
            models.Index(
                fields=["canonical_status", "next_check_at"],
                name="shipments_status_due_idx",
            ),
            models.Index(fields=["created_at"], name="shipments_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.tracking_source}:{self.tracking_number}"

    @property
    def is_terminal(self) -> bool:
        """배송완료/반송으로 스케줄링에서 영구 제외됐는지 (표시 상태와 무관)"""
        return self.delivery_confirmed or (
            self.next_check_at is not None and self.next_check_at >= NEVER_CHECK_AGAIN
        )
