# domains/lookup/services.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional

from django.db.models import Q

from domains.shipments.models import Shipment

from .identity import IdentityQuery, build_identity
from .ratelimit import enforce, identity_limiter, ip_limiter

logger = logging.getLogger(__name__)

MODE_ACTIVE_ONLY = "ACTIVE_ONLY"
MODE_LATEST_DELIVERED = "LATEST_DELIVERED"

_EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)


@dataclass
class LookupResult:
    mode: Optional[str] = None
    shipments: List[Shipment] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.shipments)


def find_shipments(identity: IdentityQuery) -> List[Shipment]:
    """입력된 항목 중 하나라도 일치(OR)하는 운송장, 최근 생성 순"""
    cond = Q()
    if identity.phone:
        cond |= Q(customer_mobile=identity.phone)
    if identity.email:
        cond |= Q(customer_email=identity.email)
    if identity.order_reference:
        cond |= Q(order_reference=identity.order_reference)
    if identity.tracking_number:
        cond |= Q(tracking_number=identity.tracking_number)
    if not cond:
        return []
    return list(Shipment.objects.filter(cond).order_by("-created_at", "-id"))


def select_relevant(shipments: List[Shipment]) -> LookupResult:
    """
    - 배송완료 아닌 건이 하나라도 있으면 → 그것들 전부 (ACTIVE_ONLY)
    - 전부 배송완료면 → 가장 최근에 배송완료된 1건 (LATEST_DELIVERED)
    - 없으면 → found=False
    """
    if not shipments:
        return LookupResult()

    active = [s for s in shipments if not s.delivery_confirmed]
    if active:
        return LookupResult(mode=MODE_ACTIVE_ONLY, shipments=active)

    latest = max(shipments, key=lambda s: (s.delivered_at or _EPOCH, s.created_at or _EPOCH))
    return LookupResult(mode=MODE_LATEST_DELIVERED, shipments=[latest])


def resolve_customer_shipments(
    data: Dict[str, Any], *, client_ip: str = "", now: Optional[float] = None
) -> LookupResult:
    """
    고객 주문 조회
      1) IP 기준 rate limit (모든 시도 카운트)
      2) 신원 확인(전화번호/이메일 필수) + 정규화
      3) 신원 키 기준 rate limit
      4) 조회 → 관련 운송장 선택
    조회 자체는 읽기 전용.
    """
    enforce(ip_limiter(), client_ip, now=now)
    identity = build_identity(data or {})
    enforce(identity_limiter(), identity.key, now=now)

    result = select_relevant(find_shipments(identity))
    logger.info(
        "Customer lookup %s → mode=%s count=%d",
        identity.key.split(":", 1)[0],
        result.mode,
        len(result.shipments),
    )
    return result
