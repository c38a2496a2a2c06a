from __future__ import annotations

from typing import Dict, List, Optional, Type

from .base import TrackingAdapter

# 어댑터 레지스트리
_REGISTRY: Dict[str, Type[TrackingAdapter]] = {}

# 운송장 정보가 없을 때(첫 조회) 시도 순서
DEFAULT_ORDER: List[str] = ["shiprocket", "bluedart"]


def _norm(code: str) -> str:
    return (code or "").strip().lower().replace("-", "_").replace(" ", "")


# 흔한 별칭 → 표준 코드
_ALIASES = {
    "sr": "shiprocket",
    "bd": "bluedart",
    "blue_dart": "bluedart",
    "bluedartexpress": "bluedart",
}


def register_adapter(code: str, adapter_cls: Type[TrackingAdapter]) -> None:
    """택배사 코드(별칭 포함)에 어댑터 클래스를 등록."""
    _REGISTRY[_norm(code)] = adapter_cls


def get_adapter(code: str) -> TrackingAdapter:
    """택배사 코드/별칭으로 어댑터 인스턴스를 반환."""
    key = _norm(_ALIASES.get(_norm(code), code))
    cls = _REGISTRY.get(key)
    if not cls:
        raise LookupError(f"No adapter registered for provider '{code}' (key='{key}')")
    return cls()


def provider_order(last_source: Optional[str]) -> List[str]:
    """
    마지막으로 응답한 택배사를 먼저, 나머지는 기본 순서대로.
    last_source 가 비었거나 unknown 이면 기본 순서.
    """
    first = _norm(_ALIASES.get(_norm(last_source or ""), last_source or ""))
    if first in DEFAULT_ORDER:
        return [first] + [c for c in DEFAULT_ORDER if c != first]
    return list(DEFAULT_ORDER)


def public_tracking_url(source: Optional[str], tracking_number: str) -> Optional[str]:
    """마지막 응답 택배사의 고객용 추적 페이지. 모르면 None."""
    key = _norm(_ALIASES.get(_norm(source or ""), source or ""))
    cls = _REGISTRY.get(key)
    if not cls or not cls.public_url_template or not tracking_number:
        return None
    return cls.public_url_template.format(awb=tracking_number)
