# domains/lookup/ratelimit.py
from __future__ import annotations

import hashlib
import math
import time
from typing import Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from rest_framework.exceptions import Throttled


class RateLimited(Throttled):
    default_detail = "Too many lookup attempts. Please try again later."
    default_code = "rate_limited"


class FixedWindowLimiter:
    """
    고정 윈도우 카운터 (Django cache).
    - 키: scope + 식별자 해시 + 윈도우 시작 시각 → 윈도우가 바뀌면 새 카운터
    - cache.add / cache.incr 는 원자적 → 별도 락 없음
    - TTL 로 만료 (프로세스 로컬 LocMemCache 기본, 여러 인스턴스면 Redis 등 공유 캐시)
    """

    def __init__(self, scope: str, limit: int, window: int):
        self.scope = scope
        self.limit = int(limit)
        self.window = int(window)

    def _key(self, ident: str, window_start: int) -> str:
        digest = hashlib.sha256(ident.encode("utf-8")).hexdigest()[:32]
        return f"lookup:rl:{self.scope}:{digest}:{window_start}"

    def hit(self, ident: str, now: Optional[float] = None) -> Tuple[bool, int]:
        """
        요청 1회 기록.
        반환: (허용 여부, 현재 윈도우가 끝날 때까지 남은 초)
        """
        now = time.time() if now is None else now
        window_start = int(now // self.window) * self.window
        key = self._key(ident, window_start)

        if cache.add(key, 1, timeout=self.window):
            count = 1
        else:
            try:
                count = cache.incr(key)
            except ValueError:
                # add 와 incr 사이에 만료된 경우
                cache.add(key, 1, timeout=self.window)
                count = 1

        retry_after = max(int(math.ceil(window_start + self.window - now)), 1)
        return count <= self.limit, retry_after


def _window() -> int:
    return int(getattr(settings, "LOOKUP_WINDOW_SECONDS", 15 * 60))


def ip_limiter() -> FixedWindowLimiter:
    return FixedWindowLimiter("ip", getattr(settings, "LOOKUP_IP_LIMIT", 30), _window())


def identity_limiter() -> FixedWindowLimiter:
    return FixedWindowLimiter(
        "identity", getattr(settings, "LOOKUP_IDENTITY_LIMIT", 10), _window()
    )


def enforce(limiter: FixedWindowLimiter, ident: str, now: Optional[float] = None) -> None:
    if not ident:
        return
    allowed, retry_after = limiter.hit(ident, now=now)
    if not allowed:
        raise RateLimited(wait=retry_after)
