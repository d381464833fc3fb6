import pytest

from moveflow.amounts import format_amount, format_base_units, parse_display_amount, to_base_units
from moveflow.config import DEFAULT_COINS
from moveflow.helpers import (
    format_timestamp, is_moveflow_related, normalize_address, normalize_token_type, token_display_name,
)

APT = DEFAULT_COINS['APT']


@pytest.mark.parametrize("raw, expected", [
    ("0xABC", "0xabc"),
    ("  abc  ", "0xabc"),
    ("0x1", "0x1"),
    ("", ""),
    (None, ""),
])
def test_normalize_address(raw, expected):
    assert normalize_address(raw) == expected


def test_normalize_address_is_idempotent():
    once = normalize_address(" DEADBEEF ")
    assert normalize_address(once) == once == "0xdeadbeef"


def test_normalize_token_type():
    assert normalize_token_type("APT") == APT
    assert normalize_token_type("usdc") == DEFAULT_COINS['USDC']
    assert normalize_token_type(None) == APT
    assert normalize_token_type("0x9::foo::Bar") == "0x9::foo::Bar"


def test_token_display_name():
    assert token_display_name(APT) == "APT"
    assert token_display_name("0x9::foo::Bar<0x1::x::Y>") == "Bar"


def test_format_timestamp():
    assert format_timestamp(0) is None
    assert format_timestamp("not a number") is None
    assert format_timestamp("86400") == "1970-01-02 00:00:00 UTC"


def test_is_moveflow_related():
    contract = "0xc0ffee"
    assert is_moveflow_related({'payload': {'function': f"{contract}::stream::create"}}, contract)
    assert is_moveflow_related({'events': [{'type': f"{contract}::stream::StreamEvent"}]}, contract)
    assert not is_moveflow_related({'payload': {'function': "0x1::coin::transfer"}, 'events': []}, contract)


def test_format_amount_native_coin():
    assert format_amount("100000000", APT) == "1.00000000 APT"
    assert format_amount(1, APT) == "0.00000001 APT"
    assert format_amount(0, APT) == "0.00000000 APT"


def test_format_amount_keeps_precision_above_float_range():
    big = 2 ** 60 + 1
    assert format_amount(str(big), APT) == f"{format_base_units(big)} APT"
    assert parse_display_amount(format_amount(str(big), APT)) == big


def test_format_amount_other_tokens():
    assert format_amount("1234567", DEFAULT_COINS['USDC'], symbol="USDC") == "1,234,567 USDC"
    assert format_amount("1234567", "0x9::foo::Bar") == "1,234,567"


def test_format_amount_passes_through_unparseable():
    assert format_amount("n/a", APT) == "n/a"


@pytest.mark.parametrize("amount, expected", [
    ("1", 100000000),
    ("1.5", 150000000),
    ("0.00000001", 1),
    ("0.123456789", 12345678),
])
def test_to_base_units(amount, expected):
    assert to_base_units(amount) == expected


@pytest.mark.parametrize("amount", ["0", "-1", "abc", "0.000000001", "NaN"])
def test_to_base_units_rejects(amount):
    with pytest.raises(ValueError):
        to_base_units(amount)


@pytest.mark.parametrize("raw", ['--5', '²', '1e8'])
def test_format_amount_passes_through_malformed_integers(raw):
    assert format_amount(raw, APT) == raw
