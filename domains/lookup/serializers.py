from __future__ import annotations

from rest_framework import serializers

from domains.shipments.adapters import public_tracking_url
from domains.shipments.models import Shipment

LATEST_SCANS = 5


# ---------------------------
# 입력: 고객 조회
# 모두 선택 항목이지만 전화번호/이메일 중 하나는 서비스에서 강제
# ---------------------------
class LookupRequestSerializer(serializers.Serializer):
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    email = serializers.CharField(required=False, allow_blank=True, max_length=254)
    order_reference = serializers.CharField(required=False, allow_blank=True, max_length=40)
    tracking_number = serializers.CharField(required=False, allow_blank=True, max_length=64)


# ---------------------------
# 출력: 고객에게 보여줄 운송장 (연락처 등 내부 필드 제외)
# ---------------------------
class PublicShipmentSerializer(serializers.ModelSerializer):
    courier = serializers.CharField(source="actual_courier")
    status = serializers.CharField(source="canonical_status", allow_null=True)
    status_label = serializers.SerializerMethodField()
    scans = serializers.SerializerMethodField()
    tracking_url = serializers.SerializerMethodField()

    class Meta:
        model = Shipment
        fields = (
            "tracking_number",
            "order_reference",
            "courier",
            "status",
            "status_label",
            "raw_status_text",
            "delivered_at",
            "delivery_confirmed",
            "last_checked_at",
            "scans",
            "tracking_url",
        )

    def get_status_label(self, obj) -> str:
        return obj.get_canonical_status_display() if obj.canonical_status else "Awaiting update"

    def get_scans(self, obj) -> list:
        # 최신 몇 건만, 최신이 먼저
        return list(reversed((obj.scan_history or [])[-LATEST_SCANS:]))

    def get_tracking_url(self, obj):
        return public_tracking_url(obj.tracking_source, obj.tracking_number)


class LookupResponseSerializer(serializers.Serializer):
    found = serializers.BooleanField()
    mode = serializers.ChoiceField(
        choices=["ACTIVE_ONLY", "LATEST_DELIVERED"], allow_null=True, required=False
    )
    message = serializers.CharField(required=False)
    shipments = PublicShipmentSerializer(many=True)
