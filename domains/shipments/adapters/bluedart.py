# domains/shipments/adapters/bluedart.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import requests
from django.conf import settings

from ..status_map import normalize_status
from .base import ProviderUnavailable, TrackingAdapter, TrackingObservation

logger = logging.getLogger(__name__)

IST = ZoneInfo("Asia/Kolkata")

_MS_DATE = re.compile(r"/Date\((-?\d+)(?:[+-]\d{4})?\)/")
_DMY_FORMATS = ("%d-%b-%Y", "%d-%b-%y", "%d %b %Y", "%d/%m/%Y")


def parse_legacy_date(value: Any, time_value: Any = None) -> Optional[datetime]:
    """
    Blue Dart 날짜 표기 → aware datetime
      - "/Date(1700000000000+0530)/" : epoch ms (UTC 기준, 뒤 오프셋은 표시용)
      - "21-Oct-2025", "21-Oct-25" (+ "1530" / "15:30") : IST 기준
    못 읽으면 None
    """
    if value in (None, ""):
        return None
    s = str(value).strip()

    m = _MS_DATE.fullmatch(s)
    if m:
        return datetime.fromtimestamp(int(m.group(1)) / 1000, tz=dt_timezone.utc)

    day = None
    for fmt in _DMY_FORMATS:
        try:
            day = datetime.strptime(s, fmt)
            break
        except ValueError:
            continue
    if day is None:
        return None

    hh, mm = 0, 0
    digits = re.sub(r"\D", "", str(time_value or ""))
    if len(digits) in (3, 4):
        hh, mm = int(digits[:-2]), int(digits[-2:])
        if hh > 23 or mm > 59:
            hh, mm = 0, 0
    return day.replace(hour=hh, minute=mm, tzinfo=IST)


class BluedartAdapter(TrackingAdapter):
    """
    Blue Dart 조회 API (운송장 1건씩만 조회 가능)
    """

    code = "bluedart"
    supports_batch = False
    public_url_template = "https://www.bluedart.com/web/guest/trackdartresultthirdparty?trackFor=0&trackNo={awb}"

    def __init__(self):
        self.base_url = getattr(
            settings, "BLUEDART_BASE_URL", "https://api.bluedart.com"
        ).rstrip("/")
        self.login_id = getattr(settings, "BLUEDART_LOGIN_ID", "")
        self.license_key = getattr(settings, "BLUEDART_LICENSE_KEY", "")

    def is_configured(self) -> bool:
        return bool(self.login_id and self.license_key)

    def _fetch(self, numbers: List[str]) -> Dict[str, TrackingObservation]:
        out: Dict[str, TrackingObservation] = {}
        for awb in numbers:
            obs = self.fetch_one(awb)
            if obs is not None:
                out[awb] = obs
        return out

    def fetch_one(self, awb: str) -> Optional[TrackingObservation]:
        """단건 조회. 실패해도 예외 없이 None."""
        try:
            data = self._get(awb)
        except ProviderUnavailable as e:
            logger.warning("Bluedart lookup failed for %s: %s", awb, e)
            return None
        return self._parse(awb, data)

    def _get(self, awb: str) -> Any:
        url = f"{self.base_url}/servlet/RoutingServlet"
        params = {
            "handler": "tnt",
            "action": "custawbquery",
            "loginid": self.login_id,
            "awb": "awb",
            "numbers": awb,
            "format": "json",
            "lickey": self.license_key,
            "verno": "1",
            "scan": "1",
        }
        try:
            res = requests.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderUnavailable(f"request failed: {e}") from e
        if not (200 <= res.status_code < 300):
            raise ProviderUnavailable(f"non-2xx: {res.status_code} {res.text[:200]}")
        try:
            return res.json()
        except ValueError as e:
            raise ProviderUnavailable("response is not json") from e

    @staticmethod
    def _as_list(v) -> List[Dict[str, Any]]:
        if isinstance(v, dict):
            return [v]
        if isinstance(v, list):
            return [x for x in v if isinstance(x, dict)]
        return []

    def _parse(self, awb: str, data: Any) -> Optional[TrackingObservation]:
        if not isinstance(data, dict):
            return None
        shipments = self._as_list((data.get("ShipmentData") or {}).get("Shipment"))
        row = next(
            (s for s in shipments if str(s.get("WaybillNo", "")).strip() == awb),
            shipments[0] if len(shipments) == 1 else None,
        )
        if not row:
            return None

        code = str(row.get("StatusType") or "").strip().upper()
        raw_text = str(row.get("Status") or "").strip()
        if code == "NF" or (not code and not raw_text):
            # 잘못된/미등록 운송장
            return None

        details = self._as_list((row.get("Scans") or {}).get("ScanDetail"))
        scans = []
        for d in details:
            at = parse_legacy_date(d.get("ScanDate"), d.get("ScanTime"))
            scans.append(
                {
                    "at": at.isoformat() if at else None,
                    "status": str(d.get("Scan") or ""),
                    "location": str(d.get("ScannedLocation") or ""),
                    "_sort": at,
                }
            )
        # 날짜 있는 것끼리 오래된 순, 날짜 못 읽은 건 뒤로
        scans.sort(key=lambda x: (x["_sort"] is None, x["_sort"] or datetime.min.replace(tzinfo=dt_timezone.utc)))
        for s in scans:
            s.pop("_sort", None)

        return TrackingObservation(
            tracking_number=awb,
            provider=self.code,
            courier_name="Blue Dart",
            raw_status_text=raw_text,
            canonical_status=normalize_status(raw_text, code=code, provider=self.code),
            scans=scans,
        )
