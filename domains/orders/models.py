from __future__ import annotations

from decimal import Decimal

from django.db import models


class OrderType(models.TextChoices):
    PREPAID = "PREPAID", "Prepaid"
    COD = "COD", "Cash On Delivery"
    PPCOD = "PPCOD", "Partial Prepaid COD"  # 일부 선결제 + 나머지 착불


class Order(models.Model):
    """
    스토어 플랫폼 주문 스냅샷.
    외부 주문 수집기(services.upsert_order)만 쓰고, 배송 추적 코어에서는 읽기 전용.
    """

    platform_order_id = models.CharField(max_length=40, unique=True)
    order_reference = models.CharField(max_length=40, db_index=True)

    financial_status = models.CharField(max_length=30, blank=True, default="")
    order_type = models.CharField(
        max_length=8, choices=OrderType.choices, default=OrderType.PREPAID
    )
    is_paid = models.BooleanField(default=False)
    is_cancelled = models.BooleanField(default=False)
    fulfillment_status = models.CharField(max_length=30, blank=True, default="")

    # --- 금액 ---
    subtotal_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    outstanding_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    currency = models.CharField(max_length=3, default="INR")

    # --- 고객 연락처 (정규화된 값) ---
    customer_name = models.CharField(max_length=120, blank=True, default="")
    customer_mobile = models.CharField(max_length=20, blank=True, default="", db_index=True)
    customer_email = models.CharField(max_length=254, blank=True, default="", db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"
        indexes = [
            models.Index(fields=["created_at"], name="orders_created_idx"),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_reference}) type={self.order_type} paid={self.is_paid}"
