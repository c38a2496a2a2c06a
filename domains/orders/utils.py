# domains/orders/utils.py
import re
from typing import Optional

from django.conf import settings

_NON_DIGITS = re.compile(r"\D+")


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """
    전화번호 → "+<국가코드><번호>"
    - 숫자 이외 문자는 모두 제거
    - 10자리 국내번호는 LOOKUP_HOME_COUNTRY_CODE(기본 91) 로 간주
    - 0 으로 시작하는 11자리(트렁크 0)는 0 을 떼고 국내번호로 처리
    - 그 외 11자리 이상은 이미 국가코드가 붙은 것으로 본다
    - 10자리 미만이면 None
    """
    if not value:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    if digits.startswith("00"):
        digits = digits[2:]  # 국제전화 접두어
    cc = str(getattr(settings, "LOOKUP_HOME_COUNTRY_CODE", "91"))

    if len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"+{cc}{digits}"
    if len(digits) > 10:
        return f"+{digits}"
    return None


def normalize_email(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    email = str(value).strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        return None
    return email


def normalize_order_reference(value: Optional[str]) -> str:
    """
    주문번호 → 플랫폼 표기 ("1001", "#1001", " #ab1001 " → "#1001", "#AB1001")
    """
    prefix = getattr(settings, "ORDER_REFERENCE_PREFIX", "#")
    ref = str(value or "").strip().upper()
    if prefix:
        prefix = prefix.upper()
        while ref.startswith(prefix):
            ref = ref[len(prefix):].strip()
    if not ref:
        return ""
    return f"{prefix}{ref}"


def normalize_tracking_number(value: Optional[str]) -> str:
    return re.sub(r"\s+", "", str(value or "")).upper()
