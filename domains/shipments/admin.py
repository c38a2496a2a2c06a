from __future__ import annotations

from django.contrib import admin, messages
from django.utils import timezone
from django.utils.html import format_html

from . import models
from .attention import BUCKET_LABELS, bucket_q, buckets_for
from .services import ShipmentNotFound, refresh_tracking


# ---------- 확인 필요 버킷 필터 (버킷끼리 겹칠 수 있음) ----------
class AttentionFilter(admin.SimpleListFilter):
    title = "Attention"
    parameter_name = "attention"

    def lookups(self, request, model_admin):
        return list(BUCKET_LABELS.items())

    def queryset(self, request, queryset):
        if self.value() in BUCKET_LABELS:
            return queryset.filter(bucket_q(self.value()))
        return queryset


# ---------- Shipment Admin ----------
@admin.register(models.Shipment)
class ShipmentAdmin(admin.ModelAdmin):
    list_display = (
        "tracking_number",
        "order_reference",
        "tracking_source",
        "actual_courier",
        "canonical_status",
        "raw_status_text",
        "delivered_at",
        "next_check_display",
        "ops_resolved_at",
    )
    list_filter = ("canonical_status", "tracking_source", "delivery_confirmed", AttentionFilter)
    search_fields = ("tracking_number", "order_reference", "customer_mobile", "customer_email")
    ordering = ("-created_at",)
    actions = ["refresh_now", "mark_resolved"]

    # 운영자가 바꿀 수 있는 건 메모뿐. 나머지는 엔진/주문 수집기 전용
    readonly_fields = (
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
        "ops_resolved_at",
        "attention_display",
        "scan_history_display",
        "created_at",
        "updated_at",
    )
    fields = readonly_fields[:-4] + ("ops_note",) + readonly_fields[-4:]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def next_check_display(self, obj):
        if obj.is_terminal:
            return "-"
        return obj.next_check_at
    next_check_display.short_description = "Next check"

    def attention_display(self, obj):
        return ", ".join(BUCKET_LABELS[b] for b in buckets_for(obj)) or "-"
    attention_display.short_description = "Attention"

    def scan_history_display(self, obj):
        rows = obj.scan_history or []
        if not rows:
            return "-"
        lines = "\n".join(
            f"{r.get('at') or '?'}  {r.get('status', '')}  {r.get('location', '')}" for r in rows
        )
        return format_html("<pre style='white-space:pre-wrap'>{}</pre>", lines)
    scan_history_display.short_description = "Scans"

    @admin.action(description="Refresh tracking now")
    def refresh_now(self, request, queryset):
        ok = failed = 0
        for tn in queryset.values_list("tracking_number", flat=True):
            try:
                refresh_tracking(tn)
                ok += 1
            except ShipmentNotFound:
                failed += 1
        self.message_user(request, f"refreshed={ok} not_found={failed}", messages.INFO)

    @admin.action(description="Mark as resolved")
    def mark_resolved(self, request, queryset):
        n = queryset.filter(ops_resolved_at__isnull=True).update(
            ops_resolved_at=timezone.now(), updated_at=timezone.now()
        )
        self.message_user(request, f"resolved={n}", messages.INFO)
