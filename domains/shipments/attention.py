"""
운영 화면용 '확인 필요' 버킷.

버킷은 서로 독립적인 조건이다. 한 운송장이 여러 버킷에 동시에 들어갈 수 있다
(예: NDR 이 24시간 넘게 풀리지 않으면 ndr_open 과 ndr_aging 둘 다).
모든 조건은 canonical_status 등 저장된 표준 필드만 본다.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from django.db.models import Q
from django.utils import timezone

from .models import CanonicalStatus, Shipment, open_q

STALE_AFTER = timedelta(hours=48)
NDR_AGING_AFTER = timedelta(hours=24)


def _ndr_open(now: datetime) -> Q:
    return Q(canonical_status=CanonicalStatus.NDR, ops_resolved_at__isnull=True)


def _ndr_aging(now: datetime) -> Q:
    return Q(first_ndr_at__lte=now - NDR_AGING_AFTER, delivery_confirmed=False)


def _stale(now: datetime) -> Q:
    cutoff = now - STALE_AFTER
    return open_q() & (
        Q(last_checked_at__lte=cutoff)
        | Q(last_checked_at__isnull=True, created_at__lte=cutoff)
    )


def _out_for_delivery(now: datetime) -> Q:
    return Q(canonical_status=CanonicalStatus.OUT_FOR_DELIVERY)


def _rto(now: datetime) -> Q:
    return Q(canonical_status=CanonicalStatus.RTO)


BUCKETS: Dict[str, Callable[[datetime], Q]] = {
    "ndr_open": _ndr_open,
    "ndr_aging": _ndr_aging,
    "stale": _stale,
    "out_for_delivery": _out_for_delivery,
    "rto": _rto,
}

BUCKET_LABELS = {
    "ndr_open": "NDR (unresolved)",
    "ndr_aging": "NDR older than 24h",
    "stale": "Not checked for 48h",
    "out_for_delivery": "Out for delivery",
    "rto": "Returned to origin",
}


def bucket_q(name: str, now: Optional[datetime] = None) -> Q:
    if name not in BUCKETS:
        raise KeyError(name)
    return BUCKETS[name](now or timezone.now())


def buckets_for(shipment: Shipment, now: Optional[datetime] = None) -> List[str]:
    """운송장이 속한 버킷 이름 목록 (버킷마다 exists 쿼리 1회)"""
    now = now or timezone.now()
    qs = Shipment.objects.filter(pk=shipment.pk)
    return [name for name, make_q in BUCKETS.items() if qs.filter(make_q(now)).exists()]
