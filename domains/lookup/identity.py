# domains/lookup/identity.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import APIException

from domains.orders.utils import (
    normalize_email,
    normalize_order_reference,
    normalize_phone,
    normalize_tracking_number,
)


class InvalidIdentity(APIException):
    """전화번호/이메일 없이 주문번호·운송장번호만으로 조회하려는 경우 등"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Phone number or email is required to look up orders."
    default_code = "invalid_identity"


@dataclass(frozen=True)
class IdentityQuery:
    phone: Optional[str] = None
    email: Optional[str] = None
    order_reference: Optional[str] = None
    tracking_number: Optional[str] = None

    @property
    def key(self) -> str:
        """rate limit 키: phone > email > order_reference > tracking_number"""
        for name in ("phone", "email", "order_reference", "tracking_number"):
            value = getattr(self, name)
            if value:
                return f"{name}:{value}"
        return ""


def _clean(v: Any) -> str:
    return str(v).strip() if v is not None else ""


def build_identity(data: Dict[str, Any]) -> IdentityQuery:
    """
    요청값 정규화 + 신원 확인.
    주문번호/운송장번호만으로는 조회 불가 (남의 주문 긁어가기 방지) →
    전화번호 또는 이메일이 반드시 있어야 한다.
    """
    raw_phone = _clean(data.get("phone"))
    raw_email = _clean(data.get("email"))
    raw_ref = _clean(data.get("order_reference"))
    raw_tn = _clean(data.get("tracking_number"))

    phone = normalize_phone(raw_phone) if raw_phone else None
    if raw_phone and not phone:
        raise InvalidIdentity("Phone number is not valid.")
    email = normalize_email(raw_email) if raw_email else None
    if raw_email and not email:
        raise InvalidIdentity("Email address is not valid.")

    if not (phone or email):
        raise InvalidIdentity()

    return IdentityQuery(
        phone=phone,
        email=email,
        order_reference=normalize_order_reference(raw_ref) or None,
        tracking_number=normalize_tracking_number(raw_tn) or None,
    )

