"""
domains/shipments/status_map.py 테스트
"""

import pytest

from domains.shipments.models import CanonicalStatus
from domains.shipments.status_map import normalize_status


class TestProviderCodes:
    """코드표에 있는 코드는 문구보다 우선"""

    @pytest.mark.parametrize(
        "code, expected",
        [
            (7, CanonicalStatus.DELIVERED),
            ("17", CanonicalStatus.OUT_FOR_DELIVERY),
            ("21", CanonicalStatus.NDR),
            ("42", CanonicalStatus.PICKED_UP),
            ("10", CanonicalStatus.RTO),
        ],
    )
    def test_shiprocket_codes(self, code, expected):
        assert normalize_status("whatever", code=code, provider="shiprocket") == expected

    def test_bluedart_code_wins_over_text(self):
        # 문구는 배송완료처럼 보여도 UD 코드면 NDR
        assert normalize_status("Delivered?", code="ud", provider="bluedart") == CanonicalStatus.NDR

    def test_unknown_code_falls_back_to_text(self):
        assert (
            normalize_status("Out for Delivery", code="999", provider="shiprocket")
            == CanonicalStatus.OUT_FOR_DELIVERY
        )

    def test_code_without_provider_is_ignored(self):
        assert normalize_status("In Transit", code="7") == CanonicalStatus.IN_TRANSIT


class TestKeywords:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Undelivered - customer not available", CanonicalStatus.NDR),
            ("Delivery failed", CanonicalStatus.NDR),
            ("RTO Delivered", CanonicalStatus.RTO),
            ("Returned to shipper", CanonicalStatus.RTO),
            ("OUT FOR DELIVERY", CanonicalStatus.OUT_FOR_DELIVERY),
            ("Shipment Delivered", CanonicalStatus.DELIVERED),
            ("Cancelled by seller", CanonicalStatus.CANCELLED),
            ("Picked Up", CanonicalStatus.PICKED_UP),
            ("Reached destination hub", CanonicalStatus.IN_TRANSIT),
        ],
    )
    def test_text_matching(self, text, expected):
        assert normalize_status(text) == expected

    def test_empty_or_unmatched_is_unknown(self):
        assert normalize_status("") == CanonicalStatus.UNKNOWN
        assert normalize_status(None) == CanonicalStatus.UNKNOWN
        assert normalize_status("Manifested") == CanonicalStatus.UNKNOWN
