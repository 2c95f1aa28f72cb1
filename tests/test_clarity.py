"""
Tests for the Clarity value codec used by read-only calls and raw print events.
"""

import pytest

from src.core.errors import ClarityDecodeError
from src.services.contract.clarity import c32_address, decode_clarity_hex, serialize_uint


def _uint(n):
    return serialize_uint(n)[2:]


def _ascii(text):
    return "0d" + len(text).to_bytes(4, "big").hex() + text.encode("ascii").hex()


def test_serialize_uint():
    assert serialize_uint(42) == "0x01" + "00" * 15 + "2a"
    assert serialize_uint(0) == "0x01" + "00" * 16


def test_serialize_uint_rejects_out_of_range():
    with pytest.raises(ValueError):
        serialize_uint(-1)
    with pytest.raises(ValueError):
        serialize_uint(1 << 128)


def test_decode_uint_and_int():
    assert decode_clarity_hex(serialize_uint(42)) == {"type": "uint", "value": "42"}
    minus_one = "00" + "ff" * 16
    assert decode_clarity_hex(minus_one) == {"type": "int", "value": "-1"}


def test_decode_bool_none_buffer():
    assert decode_clarity_hex("0x03") == {"type": "bool", "value": True}
    assert decode_clarity_hex("0x04") == {"type": "bool", "value": False}
    assert decode_clarity_hex("0x09") == {"type": "(optional none)", "value": None}
    assert decode_clarity_hex("0x0200000002beef") == {"type": "(buff 2)", "value": "0xbeef"}


def test_decode_ok_tuple():
    hex_value = "0x07" + "0c00000002" + "02" + "6964" + _uint(7) + "05" + b"event".hex() + _ascii("invoice-created")

    decoded = decode_clarity_hex(hex_value)

    assert decoded["success"] is True
    fields = decoded["value"]["value"]
    assert fields["id"] == {"type": "uint", "value": "7"}
    assert fields["event"]["value"] == "invoice-created"


def test_decode_err_and_some_list():
    assert decode_clarity_hex("0x08" + _uint(404))["success"] is False

    some_list = "0a" + "0b00000002" + _uint(1) + _uint(2)
    decoded = decode_clarity_hex(some_list)
    assert [item["value"] for item in decoded["value"]["value"]] == ["1", "2"]


def test_decode_standard_principal():
    # Boot address: mainnet single-sig version with an all-zero hash160
    assert c32_address(22, bytes(20)) == "SP000000000000000000002Q6VF78"
    hex_value = "05" + "16" + "00" * 20
    assert decode_clarity_hex(hex_value) == {"type": "principal", "value": "SP000000000000000000002Q6VF78"}


def test_decode_contract_principal():
    name = b"pox-4"
    hex_value = "06" + "16" + "00" * 20 + f"{len(name):02x}" + name.hex()
    assert decode_clarity_hex(hex_value)["value"] == "SP000000000000000000002Q6VF78.pox-4"


@pytest.mark.parametrize("bad", ["0x01ff", "zz", "0x", "0x0300", "0x99", 42])
def test_decode_rejects_malformed(bad):
    with pytest.raises(ClarityDecodeError):
        decode_clarity_hex(bad)
