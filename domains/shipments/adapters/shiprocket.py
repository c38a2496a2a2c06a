# domains/shipments/adapters/shiprocket.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings
from django.core.cache import cache

from ..status_map import normalize_status
from .base import ProviderUnavailable, TrackingAdapter, TrackingObservation

logger = logging.getLogger(__name__)

TOKEN_CACHE_KEY = "tracking:shiprocket:token"


class ShiprocketAdapter(TrackingAdapter):
    """
    Shiprocket 조회 API (여러 AWB 한 번에 조회 가능)
    - 로그인 토큰은 캐시에 TTL 로 보관, 401 이면 버리고 한 번만 재발급
    """

    code = "shiprocket"
    supports_batch = True
    public_url_template = "https://shiprocket.co/tracking/{awb}"

    def __init__(self):
        self.base_url = getattr(
            settings, "SHIPROCKET_BASE_URL", "https://apiv2.shiprocket.in"
        ).rstrip("/")
        self.email = getattr(settings, "SHIPROCKET_EMAIL", "")
        self.password = getattr(settings, "SHIPROCKET_PASSWORD", "")
        self.batch_limit = max(int(getattr(settings, "SHIPROCKET_BATCH_LIMIT", 50)), 1)
        self.token_ttl = int(getattr(settings, "SHIPROCKET_TOKEN_TTL", 9 * 24 * 3600))

    def is_configured(self) -> bool:
        return bool(self.email and self.password)

    # ------------------------------------------------------------------
    # 토큰
    # ------------------------------------------------------------------
    def _login(self) -> str:
        url = f"{self.base_url}/v1/external/auth/login"
        try:
            res = requests.post(
                url,
                json={"email": self.email, "password": self.password},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderUnavailable(f"login request failed: {e}") from e
        if not (200 <= res.status_code < 300):
            raise ProviderUnavailable(f"login non-2xx: {res.status_code}")
        try:
            token = (res.json() or {}).get("token")
        except ValueError as e:
            raise ProviderUnavailable("login response is not json") from e
        if not token:
            raise ProviderUnavailable("login response has no token")
        cache.set(TOKEN_CACHE_KEY, token, self.token_ttl)
        logger.info("Shiprocket token refreshed (ttl=%ss)", self.token_ttl)
        return token

    def _token(self) -> str:
        return cache.get(TOKEN_CACHE_KEY) or self._login()

    @staticmethod
    def invalidate_token() -> None:
        cache.delete(TOKEN_CACHE_KEY)

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------
    def _post_awbs(self, awbs: List[str]) -> Any:
        url = f"{self.base_url}/v1/external/courier/track/awbs"
        for attempt in (1, 2):
            headers = {
                "Authorization": f"Bearer {self._token()}",
                "Content-Type": "application/json",
            }
            try:
                res = requests.post(
                    url, json={"awbs": awbs}, headers=headers, timeout=self.timeout
                )
            except requests.RequestException as e:
                raise ProviderUnavailable(f"track request failed: {e}") from e

            if res.status_code == 401:
                self.invalidate_token()
                if attempt == 1:
                    continue
                raise ProviderUnavailable("unauthorized after token refresh")
            if not (200 <= res.status_code < 300):
                raise ProviderUnavailable(
                    f"track non-2xx: {res.status_code} {res.text[:200]}"
                )
            try:
                return res.json()
            except ValueError as e:
                raise ProviderUnavailable("track response is not json") from e

    def _fetch(self, numbers: List[str]) -> Dict[str, TrackingObservation]:
        out: Dict[str, TrackingObservation] = {}
        for i in range(0, len(numbers), self.batch_limit):
            chunk = numbers[i : i + self.batch_limit]
            try:
                data = self._post_awbs(chunk)
            except ProviderUnavailable as e:
                # 한 묶음 실패가 나머지 묶음을 막지 않게
                logger.warning("Shiprocket batch failed (%d awbs): %s", len(chunk), e)
                continue
            for awb, tracking_data in self._iter_tracking_data(data):
                if awb not in chunk:
                    continue
                obs = self._parse_tracking_data(awb, tracking_data)
                if obs is not None:
                    out[awb] = obs
        return out

    @staticmethod
    def _iter_tracking_data(data: Any):
        """
        응답을 AWB 별로 분리.
        - {"<awb>": {"tracking_data": {...}}, ...}
        - [{"<awb>": {"tracking_data": {...}}}, ...]
        """
        rows = data if isinstance(data, list) else [data]
        for row in rows:
            if not isinstance(row, dict):
                continue
            for awb, body in row.items():
                if isinstance(body, dict) and isinstance(body.get("tracking_data"), dict):
                    yield str(awb).strip(), body["tracking_data"]

    def _parse_tracking_data(
        self, awb: str, td: Dict[str, Any]
    ) -> Optional[TrackingObservation]:
        if not td.get("track_status") or td.get("error"):
            return None

        tracks = td.get("shipment_track") or []
        head = tracks[0] if tracks and isinstance(tracks[0], dict) else {}
        activities = [a for a in (td.get("shipment_track_activities") or []) if isinstance(a, dict)]

        raw_text = (
            head.get("current_status")
            or (activities[0].get("sr-status-label") if activities else "")
            or (activities[0].get("activity") if activities else "")
            or ""
        )
        code = td.get("shipment_status")
        if code in (None, "") and activities:
            code = activities[0].get("sr-status")

        # Shiprocket 은 최신 스캔이 앞에 온다 → 오래된 순으로 뒤집기
        scans = [
            {
                "at": a.get("date"),
                "status": a.get("activity") or a.get("status") or "",
                "location": a.get("location") or "",
            }
            for a in reversed(activities)
        ]
        return TrackingObservation(
            tracking_number=awb,
            provider=self.code,
            courier_name=str(head.get("courier_name") or "Shiprocket"),
            raw_status_text=str(raw_text),
            canonical_status=normalize_status(raw_text, code=code, provider=self.code),
            scans=scans,
        )
