# domains/shipments/services.py
from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.db.models import Case, DateTimeField, F, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework.exceptions import NotFound

from domains.orders.utils import (
    normalize_email,
    normalize_order_reference,
    normalize_phone,
    normalize_tracking_number,
)

from .adapters import TrackingObservation, get_adapter, provider_order
from .models import NEVER_CHECK_AGAIN, TERMINAL_STATUSES, CanonicalStatus, Shipment

logger = logging.getLogger(__name__)


class ShipmentNotFound(NotFound):
    """단건 조회 경로 전용. 배치 스케줄링에서는 건너뛰고 계속 진행."""

    default_detail = "Shipment not found or no provider returned tracking data."
    default_code = "shipment_not_found"


# === 재조회 간격 정책 =========================================================
NDR_ESCALATE_AFTER = timedelta(hours=24)

RECHECK_INTERVALS: Dict[str, timedelta] = {
    CanonicalStatus.OUT_FOR_DELIVERY: timedelta(hours=1),
    CanonicalStatus.IN_TRANSIT: timedelta(hours=12),
    CanonicalStatus.PICKED_UP: timedelta(hours=12),
}
NDR_FRESH_INTERVAL = timedelta(hours=6)
NDR_AGED_INTERVAL = timedelta(hours=2)
FALLBACK_INTERVAL = timedelta(hours=24)


def compute_next_check(
    status: Optional[str], now: datetime, first_ndr_at: Optional[datetime] = None
) -> datetime:
    """
    다음 조회 시각 (apply_observation 의 SQL 식과 같은 정책)
      - DELIVERED/RTO : 영구 제외(NEVER_CHECK_AGAIN)
      - OUT_FOR_DELIVERY : +1h
      - NDR : 첫 NDR 후 24h 미만 +6h, 이상 +2h
      - IN_TRANSIT/PICKED_UP : +12h
      - 그 외/관측 없음 : +24h
    """
    if status in TERMINAL_STATUSES:
        return NEVER_CHECK_AGAIN
    if status == CanonicalStatus.NDR:
        since = first_ndr_at or now
        if now - since >= NDR_ESCALATE_AFTER:
            return now + NDR_AGED_INTERVAL
        return now + NDR_FRESH_INTERVAL
    return now + RECHECK_INTERVALS.get(status, FALLBACK_INTERVAL)


def _dt(value: datetime) -> Value:
    return Value(value, output_field=DateTimeField())


def _next_check_expression(status: CanonicalStatus, now: datetime):
    if status in TERMINAL_STATUSES:
        return _dt(NEVER_CHECK_AGAIN)

    if status == CanonicalStatus.NDR:
        # 방금 처음 찍힌 NDR(first_ndr_at 이 아직 NULL)은 나이 0 으로 본다
        computed = Case(
            When(
                first_ndr_at__lte=now - NDR_ESCALATE_AFTER,
                then=_dt(now + NDR_AGED_INTERVAL),
            ),
            default=_dt(now + NDR_FRESH_INTERVAL),
            output_field=DateTimeField(),
        )
    else:
        computed = _dt(compute_next_check(status, now))

    # 한 번 종결된 운송장은 늦게 도착한 중간 스캔이 와도 다시 스케줄되지 않는다
    return Case(
        When(next_check_at__gte=NEVER_CHECK_AGAIN, then=F("next_check_at")),
        default=computed,
        output_field=DateTimeField(),
    )


def apply_observation(obs: TrackingObservation, *, now: Optional[datetime] = None) -> bool:
    """
    관측 결과를 조건부 UPDATE 한 번으로 반영 (애플리케이션 메모리에서 read-modify-write 하지 않음).
    - 표시용 필드(raw_status_text, canonical_status, actual_courier, tracking_source,
      scan_history, last_checked_at)는 항상 최신값으로 덮어씀
    - delivered_at / first_ndr_at 은 비어 있을 때만 채움 (Coalesce)
    - delivery_confirmed 는 true 로만 바뀜
    반환: 해당 운송장 행이 있었는지
    """
    now = now or timezone.now()
    status = CanonicalStatus(obs.canonical_status)

    updates = {
        "raw_status_text": (obs.raw_status_text or "")[:255],
        "canonical_status": status,
        "actual_courier": (obs.courier_name or "")[:80],
        "tracking_source": obs.provider,
        "scan_history": list(obs.scans or []),
        "last_checked_at": now,
        "updated_at": now,
        "next_check_at": _next_check_expression(status, now),
    }
    if status == CanonicalStatus.DELIVERED:
        updates["delivered_at"] = Coalesce(F("delivered_at"), _dt(now))
        updates["delivery_confirmed"] = True
    if status == CanonicalStatus.NDR:
        updates["first_ndr_at"] = Coalesce(F("first_ndr_at"), _dt(now))

    rows = Shipment.objects.filter(tracking_number=obs.tracking_number).update(**updates)
    if rows:
        logger.info(
            "Applied %s observation for %s: %s (%r)",
            obs.provider,
            obs.tracking_number,
            status,
            obs.raw_status_text,
        )
    return bool(rows)


# === 택배사 조회 (failover) ====================================================
def _safe_fetch(code: str, numbers: List[str]) -> Dict[str, TrackingObservation]:
    """어댑터 내부에서 예상 못 한 예외가 나도 soft failure 로 취급"""
    try:
        return get_adapter(code).fetch(numbers)
    except Exception:
        logger.exception("Unexpected error from %s adapter (%d awbs)", code, len(numbers))
        return {}


def fetch_observation(
    tracking_number: str, last_source: Optional[str] = None
) -> Optional[TrackingObservation]:
    """
    마지막 응답 택배사 → 나머지 순으로 조회.
    모두 실패하면 None (예외 없음).
    """
    for code in provider_order(last_source):
        obs = _safe_fetch(code, [tracking_number]).get(tracking_number)
        if obs is not None:
            return obs
        logger.info("%s had no data for %s, trying next provider", code, tracking_number)
    return None


def reconcile_shipment(
    tracking_number: str, *, now: Optional[datetime] = None
) -> Optional[TrackingObservation]:
    """
    운송장 1건 조회 → 반영.
    양쪽 모두 실패하면 레코드는 그대로 두고(last_checked_at 포함) None 반환.
    """
    tn = normalize_tracking_number(tracking_number)
    source = (
        Shipment.objects.filter(tracking_number=tn)
        .values_list("tracking_source", flat=True)
        .first()
    )
    obs = fetch_observation(tn, source)
    if obs is None:
        logger.warning("No provider returned tracking data for %s", tn)
        return None
    apply_observation(obs, now=now)
    return obs


def refresh_tracking(tracking_number: str) -> Shipment:
    """단건 즉시 재조회 (운영자용). 없거나 조회 실패면 ShipmentNotFound."""
    tn = normalize_tracking_number(tracking_number)
    if not Shipment.objects.filter(tracking_number=tn).exists():
        raise ShipmentNotFound()
    if reconcile_shipment(tn) is None:
        raise ShipmentNotFound()
    return Shipment.objects.get(tracking_number=tn)


# === 스케줄러 ================================================================
def select_due_shipments(
    now: Optional[datetime] = None, limit: Optional[int] = None
) -> List[Tuple[str, str]]:
    """조회 대상 (tracking_number, tracking_source) 목록. 오래 기다린 순, 최대 limit 건."""
    now = now or timezone.now()
    limit = limit or int(getattr(settings, "TRACKING_BATCH_SIZE", 50))
    qs = Shipment.objects.due(now).order_by("next_check_at", "id")
    return list(qs.values_list("tracking_number", "tracking_source")[:limit])


def _fetch_groups(groups: Dict[str, List[str]]) -> Dict[str, TrackingObservation]:
    """
    택배사별 묶음 조회. 배치 지원 택배사는 한 번에, 아니면 운송장별로 나눠
    스레드 풀에서 동시에 호출한다 (네트워크만, ORM 접근 없음).
    """
    jobs: List[Tuple[str, List[str]]] = []
    for code, numbers in groups.items():
        if get_adapter(code).supports_batch:
            jobs.append((code, numbers))
        else:
            jobs.extend((code, [n]) for n in numbers)

    found: Dict[str, TrackingObservation] = {}
    workers = max(int(getattr(settings, "TRACKING_MAX_WORKERS", 4)), 1)
    with ThreadPoolExecutor(max_workers=min(workers, len(jobs) or 1)) as pool:
        futures = [pool.submit(_safe_fetch, code, numbers) for code, numbers in jobs]
        for fut in as_completed(futures):
            found.update(fut.result())
    return found


def run_due_checks(now: Optional[datetime] = None) -> Dict[str, int]:
    """
    스케줄러 1회 실행.
    반환: {"checked": 조회를 시도한 운송장 수} (성공 여부와 무관)
    """
    due = select_due_shipments(now)
    if not due:
        return {"checked": 0}

    # 운송장별 남은 시도 순서
    pending: Dict[str, List[str]] = {tn: provider_order(src) for tn, src in due}
    results: Dict[str, TrackingObservation] = {}

    while pending:
        groups: Dict[str, List[str]] = defaultdict(list)
        for tn, order in pending.items():
            groups[order[0]].append(tn)
        results.update(_fetch_groups(groups))
        pending = {
            tn: order[1:]
            for tn, order in pending.items()
            if tn not in results and len(order) > 1
        }

    applied = 0
    for tn, _ in due:
        obs = results.get(tn)
        if obs is None:
            logger.warning("No provider returned tracking data for %s, will retry next pass", tn)
            continue
        try:
            if apply_observation(obs, now=now):
                applied += 1
        except Exception:
            logger.exception("Failed to apply observation for %s", tn)

    logger.info("Tracking pass done: checked=%d applied=%d", len(due), applied)
    return {"checked": len(due)}


# === 주문 수집기 연동 =========================================================
def register_shipment(
    *,
    tracking_number: str,
    order_reference: str = "",
    customer_mobile: str = "",
    customer_email: str = "",
) -> Shipment:
    """
    주문 수집기 → 운송장 등록(멱등).
    tracking_number 기준으로 없으면 만들고, 있으면 주문/연락처만 갱신.
    상태 필드는 건드리지 않는다.
    """
    tn = normalize_tracking_number(tracking_number)
    if not tn:
        raise ValueError("tracking_number is required")

    link = {
        "order_reference": normalize_order_reference(order_reference) if order_reference else "",
        "customer_mobile": normalize_phone(customer_mobile) or "",
        "customer_email": normalize_email(customer_email) or "",
    }
    link = {k: v for k, v in link.items() if v}

    # get_or_create 는 동시 생성으로 IntegrityError 가 나면 기존 행을 다시 읽는다
    shipment, created = Shipment.objects.get_or_create(tracking_number=tn, defaults=link)
    if not created and link:
        Shipment.objects.filter(pk=shipment.pk).update(updated_at=timezone.now(), **link)
        shipment.refresh_from_db()
    return shipment
