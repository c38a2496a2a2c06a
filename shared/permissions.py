# shared/permissions.py
from __future__ import annotations

from rest_framework.permissions import BasePermission

# ---- helpers ---------------------------------------------------------------


def _is_schema_generation(view) -> bool:
    """drf-spectacular 스키마 생성 시 True (권한을 널널하게 통과시켜 문서 생성 편의)."""
    return bool(getattr(view, "swagger_fake_view", False))


def _is_active_staff(user) -> bool:
    return bool(
        getattr(user, "is_authenticated", False)
        and getattr(user, "is_active", False)
        and getattr(user, "is_staff", False)
    )


# ---- staff permissions -----------------------------------------------------


class IsOpsStaff(BasePermission):
    """운영자(is_staff) 전용: 운송장 목록/재조회/스케줄러 수동 실행"""

    def has_permission(self, request, view):
        if _is_schema_generation(view):
            return True
        return _is_active_staff(request.user)


__all__ = ["IsOpsStaff"]
