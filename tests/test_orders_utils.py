import pytest

from domains.orders.utils import (
    normalize_email,
    normalize_order_reference,
    normalize_phone,
    normalize_tracking_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9876543210", "+919876543210"),
        ("98765 43210", "+919876543210"),
        ("09876543210", "+919876543210"),
        ("+91 98765-43210", "+919876543210"),
        ("0091 9876543210", "+919876543210"),
        ("+1 415 555 0100", "+14155550100"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "12345", "abc"])
def test_normalize_phone_rejects_short(raw):
    assert normalize_phone(raw) is None


def test_normalize_phone_uses_configured_country(settings):
    settings.LOOKUP_HOME_COUNTRY_CODE = "82"
    assert normalize_phone("1012345678") == "+821012345678"


def test_normalize_email():
    assert normalize_email("  Foo@Example.COM ") == "foo@example.com"
    assert normalize_email("no-at-sign") is None
    assert normalize_email("@example.com") is None
    assert normalize_email("") is None


@pytest.mark.parametrize("raw", ["1001", "#1001", " #1001 ", "##1001"])
def test_normalize_order_reference(raw):
    assert normalize_order_reference(raw) == "#1001"


def test_normalize_order_reference_uppercases_and_empty():
    assert normalize_order_reference("ab12") == "#AB12"
    assert normalize_order_reference("  ") == ""
    assert normalize_order_reference(None) == ""


def test_normalize_tracking_number():
    assert normalize_tracking_number(" awb 12 34 ") == "AWB1234"
    assert normalize_tracking_number(None) == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7", "ORD7"),
        ("ORD7", "ORD7"),
        ("ord ord 7", "ORD7"),
        ("DOR7", "ORDDOR7"),
        ("OR7", "ORDOR7"),
        ("RD7", "ORDRD7"),
    ],
)
def test_normalize_order_reference_multi_char_prefix(settings, raw, expected):
    settings.ORDER_REFERENCE_PREFIX = "ORD"
    assert normalize_order_reference(raw) == expected
