"""
Minimal Clarity value codec.

Serializes the uint arguments the invoice contract takes and decodes
consensus-serialized results (read-only call results, raw print event
values) into JSON-friendly dicts shaped like ``{"type": ..., "value": ...}``.
"""

import hashlib
from typing import Any, Tuple

from ...core.errors import ClarityDecodeError

C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

TYPE_INT = 0x00
TYPE_UINT = 0x01
TYPE_BUFFER = 0x02
TYPE_TRUE = 0x03
TYPE_FALSE = 0x04
TYPE_STANDARD_PRINCIPAL = 0x05
TYPE_CONTRACT_PRINCIPAL = 0x06
TYPE_RESPONSE_OK = 0x07
TYPE_RESPONSE_ERR = 0x08
TYPE_NONE = 0x09
TYPE_SOME = 0x0A
TYPE_LIST = 0x0B
TYPE_TUPLE = 0x0C
TYPE_STRING_ASCII = 0x0D
TYPE_STRING_UTF8 = 0x0E

MAX_DEPTH = 32
UINT128_MAX = (1 << 128) - 1


def serialize_uint(value: int) -> str:
    """Serialize a uint argument as 0x-prefixed hex."""
    value = int(value)
    if value < 0 or value > UINT128_MAX:
        raise ValueError(f"uint out of range: {value}")
    return "0x" + (bytes([TYPE_UINT]) + value.to_bytes(16, "big")).hex()


def c32_encode(data: bytes) -> str:
    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    number = int.from_bytes(data, "big")
    digits = []
    while number > 0:
        number, remainder = divmod(number, 32)
        digits.append(C32_ALPHABET[remainder])
    return "0" * leading_zeros + "".join(reversed(digits))


def c32_address(version: int, hash160: bytes) -> str:
    """Encode a standard principal as a c32check Stacks address (e.g. SP...)."""
    checksum = hashlib.sha256(hashlib.sha256(bytes([version]) + hash160).digest()).digest()[:4]
    return "S" + C32_ALPHABET[version] + c32_encode(hash160 + checksum)


def decode_clarity_hex(hex_value: str) -> dict:
    """
    Decode a consensus-serialized Clarity value.

    Args:
        hex_value: Hex string, with or without 0x prefix

    Returns:
        Dict with "type" and "value" keys (responses also carry "success")

    Raises:
        ClarityDecodeError: if the bytes are truncated, trailing or unsupported
    """
    if not isinstance(hex_value, str):
        raise ClarityDecodeError("Clarity value must be a hex string")
    text = hex_value[2:] if hex_value.startswith("0x") else hex_value
    try:
        data = bytes.fromhex(text)
    except ValueError as e:
        raise ClarityDecodeError(f"Invalid hex: {e}") from e

    value, offset = _decode(data, 0, 0)
    if offset != len(data):
        raise ClarityDecodeError(f"Trailing bytes after Clarity value at offset {offset}")
    return value


def _take(data: bytes, offset: int, size: int) -> Tuple[bytes, int]:
    end = offset + size
    if end > len(data):
        raise ClarityDecodeError(f"Truncated Clarity value: need {size} bytes at offset {offset}")
    return data[offset:end], end


def _u32(data: bytes, offset: int) -> Tuple[int, int]:
    raw, offset = _take(data, offset, 4)
    return int.from_bytes(raw, "big"), offset


def _decode(data: bytes, offset: int, depth: int) -> Tuple[dict, int]:
    if depth > MAX_DEPTH:
        raise ClarityDecodeError("Clarity value nested too deeply")

    prefix, offset = _take(data, offset, 1)
    type_id = prefix[0]

    if type_id in (TYPE_INT, TYPE_UINT):
        raw, offset = _take(data, offset, 16)
        signed = type_id == TYPE_INT
        number = int.from_bytes(raw, "big", signed=signed)
        return {"type": "int" if signed else "uint", "value": str(number)}, offset

    if type_id == TYPE_BUFFER:
        length, offset = _u32(data, offset)
        raw, offset = _take(data, offset, length)
        return {"type": f"(buff {length})", "value": "0x" + raw.hex()}, offset

    if type_id in (TYPE_TRUE, TYPE_FALSE):
        return {"type": "bool", "value": type_id == TYPE_TRUE}, offset

    if type_id in (TYPE_STANDARD_PRINCIPAL, TYPE_CONTRACT_PRINCIPAL):
        version_raw, offset = _take(data, offset, 1)
        hash160, offset = _take(data, offset, 20)
        address = c32_address(version_raw[0], hash160)
        if type_id == TYPE_STANDARD_PRINCIPAL:
            return {"type": "principal", "value": address}, offset
        name_length_raw, offset = _take(data, offset, 1)
        name_raw, offset = _take(data, offset, name_length_raw[0])
        return {"type": "principal", "value": f"{address}.{name_raw.decode('ascii')}"}, offset

    if type_id in (TYPE_RESPONSE_OK, TYPE_RESPONSE_ERR):
        inner, offset = _decode(data, offset, depth + 1)
        return {"type": "response", "value": inner, "success": type_id == TYPE_RESPONSE_OK}, offset

    if type_id == TYPE_NONE:
        return {"type": "(optional none)", "value": None}, offset

    if type_id == TYPE_SOME:
        inner, offset = _decode(data, offset, depth + 1)
        return {"type": "optional", "value": inner}, offset

    if type_id == TYPE_LIST:
        count, offset = _u32(data, offset)
        items = []
        for _ in range(count):
            item, offset = _decode(data, offset, depth + 1)
            items.append(item)
        return {"type": f"(list {count})", "value": items}, offset

    if type_id == TYPE_TUPLE:
        count, offset = _u32(data, offset)
        fields: dict[str, Any] = {}
        for _ in range(count):
            name_length_raw, offset = _take(data, offset, 1)
            name_raw, offset = _take(data, offset, name_length_raw[0])
            fields[name_raw.decode("ascii")], offset = _decode(data, offset, depth + 1)
        return {"type": "tuple", "value": fields}, offset

    if type_id in (TYPE_STRING_ASCII, TYPE_STRING_UTF8):
        length, offset = _u32(data, offset)
        raw, offset = _take(data, offset, length)
        encoding = "ascii" if type_id == TYPE_STRING_ASCII else "utf-8"
        kind = "string-ascii" if type_id == TYPE_STRING_ASCII else "string-utf8"
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise ClarityDecodeError(f"Invalid {kind} payload: {e}") from e
        return {"type": f"({kind} {length})", "value": text}, offset

    raise ClarityDecodeError(f"Unsupported Clarity type prefix 0x{type_id:02x}")
