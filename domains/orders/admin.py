# domains/orders/admin.py
from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_reference",
        "platform_order_id",
        "order_type",
        "financial_status",
        "is_paid",
        "is_cancelled",
        "fulfillment_status",
        "total_price",
        "created_at",
    )
    list_filter = ("order_type", "is_paid", "is_cancelled", "fulfillment_status")
    search_fields = ("order_reference", "platform_order_id", "customer_mobile", "customer_email")
    ordering = ("-created_at",)
    # 주문 수집기 전용 데이터 → 관리자 화면에서는 읽기 전용
    readonly_fields = [f.name for f in Order._meta.fields]
