from __future__ import annotations

from rest_framework import serializers

from .attention import buckets_for
from .models import Shipment


# ---------------------------
# 출력용: ShipmentSerializer (운영자)
# ---------------------------
class ShipmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shipment
        fields = (
            "id",
            "tracking_number",
            "tracking_source",
            "actual_courier",
            "raw_status_text",
            "canonical_status",
            "first_ndr_at",
            "delivered_at",
            "delivery_confirmed",
            "last_checked_at",
            "next_check_at",
            "order_reference",
            "customer_mobile",
            "customer_email",
            "ops_note",
            "ops_resolved_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class ShipmentDetailSerializer(ShipmentSerializer):
    attention = serializers.SerializerMethodField()

    class Meta(ShipmentSerializer.Meta):
        fields = ShipmentSerializer.Meta.fields + ("scan_history", "attention")
        read_only_fields = fields

    def get_attention(self, obj) -> list:
        return buckets_for(obj)


# ---------------------------
# 입력용: 운영 메모
# resolved=true → ops_resolved_at 기록, false → 해제
# ---------------------------
class OpsNoteSerializer(serializers.Serializer):
    ops_note = serializers.CharField(required=False, allow_blank=True)
    resolved = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("ops_note 또는 resolved 중 하나는 필수입니다.")
        return attrs


class RunChecksResultSerializer(serializers.Serializer):
    checked = serializers.IntegerField()
