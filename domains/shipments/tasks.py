# domains/shipments/tasks.py
from __future__ import annotations

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name="domains.shipments.tasks.run_due_checks")
def run_due_checks() -> dict:
    """
    스케줄러 1회 (beat 주기 호출): 조회 대상만 골라 묶음 조회 → 반영
    반환: {"checked": n}
    """
    from .services import run_due_checks as _run

    return _run()


@shared_task(bind=True, max_retries=3, retry_backoff=True, retry_jitter=True, acks_late=True,
             name="domains.shipments.tasks.refresh_shipment")
def refresh_shipment(self, tracking_number: str) -> bool:
    """
    단건 재조회 (예: 주문 수집기에서 새 운송장 등록 직후)
    반환: 관측 결과를 반영했는지. 조회 실패(not found)는 재시도하지 않음.
    """
    from .services import reconcile_shipment

    try:
        return reconcile_shipment(tracking_number) is not None
    except Exception as e:
        logger.warning("refresh_shipment(%s) failed, retrying: %s", tracking_number, e)
        raise self.retry(exc=e)
