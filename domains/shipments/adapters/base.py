# domains/shipments/adapters/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from django.conf import settings

from ..models import CanonicalStatus

logger = logging.getLogger(__name__)


class ProviderUnavailable(Exception):
    """타임아웃/네트워크 오류/2xx 아님/파싱 실패. 항상 soft failure 로 취급."""

    pass


@dataclass(frozen=True)
class TrackingObservation:
    tracking_number: str
    provider: str
    courier_name: str
    raw_status_text: str
    canonical_status: CanonicalStatus
    # [{"at": ISO8601|None, "status": str, "location": str}, ...] 오래된 → 최신
    scans: List[Dict[str, Any]] = field(default_factory=list)


class TrackingAdapter:
    """
    택배사 어댑터 공통 인터페이스.

    fetch() 는 절대 예외를 올리지 않는다. 조회 실패한 운송장은 결과 dict 에서
    빠질 뿐이고, 엔진이 다른 택배사로 넘어간다.
    """

    code: str = ""
    supports_batch: bool = False
    # 고객에게 보여줄 택배사 추적 페이지 ({awb} 치환)
    public_url_template: str = ""

    @property
    def timeout(self) -> float:
        return float(getattr(settings, "TRACKING_HTTP_TIMEOUT", 8))

    def is_configured(self) -> bool:
        return True

    def fetch(self, tracking_numbers: Iterable[str]) -> Dict[str, TrackingObservation]:
        numbers = [n for n in dict.fromkeys(tracking_numbers) if n]
        if not numbers:
            return {}
        if not self.is_configured():
            logger.warning("%s credentials not configured, skipping %d lookups", self.code, len(numbers))
            return {}
        try:
            return self._fetch(numbers)
        except ProviderUnavailable as e:
            logger.warning("%s unavailable for %s: %s", self.code, numbers, e)
            return {}

    def _fetch(self, numbers: List[str]) -> Dict[str, TrackingObservation]:
        raise NotImplementedError
