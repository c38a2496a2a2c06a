from __future__ import annotations

from typing import Dict, Optional, Tuple

from .models import CanonicalStatus

# 택배사별 상태 코드표. 코드가 있으면 문구보다 우선한다.
PROVIDER_STATUS_CODES: Dict[str, Dict[str, CanonicalStatus]] = {
    "shiprocket": {
        "6": CanonicalStatus.IN_TRANSIT,  # Shipped
        "7": CanonicalStatus.DELIVERED,
        "8": CanonicalStatus.CANCELLED,
        "9": CanonicalStatus.RTO,  # RTO Initiated
        "10": CanonicalStatus.RTO,  # RTO Delivered
        "14": CanonicalStatus.RTO,  # RTO Acknowledged
        "16": CanonicalStatus.CANCELLED,  # Cancellation Requested
        "17": CanonicalStatus.OUT_FOR_DELIVERY,
        "18": CanonicalStatus.IN_TRANSIT,
        "19": CanonicalStatus.UNKNOWN,  # Out For Pickup (아직 집화 전)
        "21": CanonicalStatus.NDR,  # Undelivered
        "22": CanonicalStatus.IN_TRANSIT,  # Delayed
        "38": CanonicalStatus.IN_TRANSIT,  # Reached Destination Hub
        "42": CanonicalStatus.PICKED_UP,
    },
    "bluedart": {
        "PU": CanonicalStatus.PICKED_UP,
        "IT": CanonicalStatus.IN_TRANSIT,
        "OD": CanonicalStatus.OUT_FOR_DELIVERY,
        "UD": CanonicalStatus.NDR,
        "DL": CanonicalStatus.DELIVERED,
        "RT": CanonicalStatus.RTO,
    },
}

# 문구 매칭 순서가 중요: "Undelivered", "RTO Delivered" 가 DELIVERED 로 빠지지 않게
# NDR/RTO 를 먼저 본다.
_KEYWORDS: Tuple[Tuple[CanonicalStatus, Tuple[str, ...]], ...] = (
    (CanonicalStatus.NDR, ("ndr", "failed", "undelivered", "not delivered")),
    (CanonicalStatus.RTO, ("rto", "return")),
    (CanonicalStatus.OUT_FOR_DELIVERY, ("out for delivery", "out-for-delivery")),
    (CanonicalStatus.DELIVERED, ("delivered",)),
    (CanonicalStatus.CANCELLED, ("cancel",)),
    (CanonicalStatus.PICKED_UP, ("picked", "pickup", "pick up")),
    (
        CanonicalStatus.IN_TRANSIT,
        ("transit", "shipped", "dispatched", "in-scan", "inscan", "reached", "arrived"),
    ),
)


def _norm_code(code) -> str:
    return str(code).strip().upper() if code not in (None, "") else ""


def normalize_status(
    raw_text: Optional[str],
    code=None,
    provider: Optional[str] = None,
) -> CanonicalStatus:
    """
    택배사 원문(코드/문구) → 내부 표준 상태.
    1) provider 코드표에 있는 코드면 그대로 사용
    2) 없으면 문구 부분일치(대소문자 무시)
    3) 아무것도 안 맞으면 UNKNOWN
    """
    key = _norm_code(code)
    if key and provider:
        table = PROVIDER_STATUS_CODES.get(provider.strip().lower(), {})
        if key in table:
            return table[key]

    text = (raw_text or "").lower()
    if not text:
        return CanonicalStatus.UNKNOWN
    for status, needles in _KEYWORDS:
        if any(n in text for n in needles):
            return status
    return CanonicalStatus.UNKNOWN
