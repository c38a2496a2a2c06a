from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Tuple

from django.db import transaction

from .models import Order, OrderType
from .utils import normalize_email, normalize_order_reference, normalize_phone


def _money(v) -> Decimal:
    # 문자열/숫자/None 모두 안전하게
    try:
        return Decimal(str(v if v not in (None, "") else "0"))
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


def classify_order_type(total, outstanding) -> str:
    """
    - 미결제 잔액 없음 → PREPAID
    - 전액 미결제 → COD
    - 일부만 미결제 → PPCOD
    """
    total, outstanding = _money(total), _money(outstanding)
    if outstanding <= 0:
        return OrderType.PREPAID
    if outstanding >= total:
        return OrderType.COD
    return OrderType.PPCOD


@transaction.atomic
def upsert_order(payload: Dict[str, Any]) -> Tuple[Order, bool]:
    """
    주문 수집기 → 주문 저장(멱등, platform_order_id 기준)
    payload 예:
    {
      "id": "5551234", "name": "#1001", "financial_status": "paid",
      "fulfillment_status": "fulfilled", "cancelled_at": null,
      "subtotal_price": "999.00", "total_price": "1049.00", "total_outstanding": "0.00",
      "currency": "INR", "customer": {"name": "...", "phone": "...", "email": "..."}
    }
    """
    data = payload or {}
    platform_id = str(data.get("id") or "").strip()
    if not platform_id:
        raise ValueError("order payload has no id")

    customer = data.get("customer") or {}
    financial_status = str(data.get("financial_status") or "")
    total = _money(data.get("total_price"))
    outstanding = _money(data.get("total_outstanding"))

    defaults = {
        "order_reference": normalize_order_reference(data.get("name") or platform_id),
        "financial_status": financial_status,
        "order_type": classify_order_type(total, outstanding),
        "is_paid": financial_status.lower() == "paid",
        "is_cancelled": bool(data.get("cancelled_at")),
        "fulfillment_status": str(data.get("fulfillment_status") or ""),
        "subtotal_price": _money(data.get("subtotal_price")),
        "total_price": total,
        "outstanding_amount": outstanding,
        "currency": str(data.get("currency") or "INR")[:3],
        "customer_name": str(customer.get("name") or "")[:120],
        "customer_mobile": normalize_phone(customer.get("phone") or data.get("phone")) or "",
        "customer_email": normalize_email(customer.get("email") or data.get("email")) or "",
    }
    return Order.objects.update_or_create(platform_order_id=platform_id, defaults=defaults)
