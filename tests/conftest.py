# tests/conftest.py
from uuid import uuid4

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache

import pytest
from rest_framework.test import APIClient

from domains.shipments.adapters import provider as provider_registry

from factories import fake_adapter, make_shipment

User = get_user_model()


# ─────────────────────────────────────────────────────────────
# 전역 테스트 환경 최적화(해싱) & 캐시 초기화
# ─────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True, scope="session")
def _fast_password_hasher(django_db_setup, django_db_blocker):
    """
    해시 느린 기본 해셔 대신 MD5 해셔 사용
    """
    with django_db_blocker.unblock():
        settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


@pytest.fixture(autouse=True)
def _clear_cache():
    """rate limit 카운터/택배사 토큰이 테스트 사이에 남지 않게"""
    cache.clear()
    yield
    cache.clear()


# ─────────────────────────────────────────────────────────────
# 클라이언트 & 인증
# ─────────────────────────────────────────────────────────────
@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    """일반 사용자 (운영 API 접근 불가)"""
    password = "Test1234!A"
    u = User.objects.create_user(
        username=f"user_{uuid4().hex[:6]}", email="user@example.com", password=password
    )
    # ✅ 로그인 테스트용 원문 비밀번호 보관
    u.raw_password = password
    return u


@pytest.fixture
def staff(db):
    """운영자 (is_staff)"""
    password = "Test1234!A"
    u = User.objects.create_user(
        username=f"ops_{uuid4().hex[:6]}",
        email="ops@example.com",
        password=password,
        is_staff=True,
    )
    u.raw_password = password
    return u


@pytest.fixture
def staff_client(staff):
    """
    SimpleJWT 토큰을 받아 Authorization 헤더 세팅된 APIClient 반환
    """
    c = APIClient()
    resp = c.post(
        "/api/v1/auth/token/",
        {"username": staff.username, "password": staff.raw_password},
        format="json",
    )
    assert resp.status_code == 200, getattr(resp, "data", resp.content)
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")
    return c


# ─────────────────────────────────────────────────────────────
# 택배사 설정 & 가짜 어댑터
# ─────────────────────────────────────────────────────────────
@pytest.fixture
def provider_settings(settings):
    settings.SHIPROCKET_BASE_URL = "https://sr.test"
    settings.SHIPROCKET_EMAIL = "ops@example.com"
    settings.SHIPROCKET_PASSWORD = "secret"
    settings.SHIPROCKET_BATCH_LIMIT = 50
    settings.BLUEDART_BASE_URL = "https://bd.test"
    settings.BLUEDART_LOGIN_ID = "LOGIN"
    settings.BLUEDART_LICENSE_KEY = "LICKEY"
    return settings


@pytest.fixture
def install_providers(monkeypatch):
    """
    사용법:
      calls = install_providers(
          shiprocket={"AWB1": "Delivered"},
          bluedart={"AWB2": "In Transit"},
      )
    운송장별 응답 문구를 주면 그 운송장만 관측값을 돌려준다 (없으면 조회 실패).
    값으로 예외 인스턴스를 주면 해당 택배사 호출 자체가 그 예외를 던진다.
    반환: {"shiprocket": [[awb, ...], ...], "bluedart": [...]} 호출 기록
    """

    def _install(shiprocket=None, bluedart=None):
        calls = {"shiprocket": [], "bluedart": []}
        monkeypatch.setitem(
            provider_registry._REGISTRY,
            "shiprocket",
            fake_adapter("shiprocket", True, shiprocket or {}, calls["shiprocket"]),
        )
        monkeypatch.setitem(
            provider_registry._REGISTRY,
            "bluedart",
            fake_adapter("bluedart", False, bluedart or {}, calls["bluedart"]),
        )
        return calls

    return _install


# ─────────────────────────────────────────────────────────────
# 팩토리 픽스처 (동적으로 여러 개 만들 때)
# ─────────────────────────────────────────────────────────────
@pytest.fixture
def shipment_factory(db):
    def _make(**kw):
        tn = kw.pop("tracking_number", f"AWB{uuid4().hex[:8].upper()}")
        return make_shipment(tracking_number=tn, **kw)

    return _make
