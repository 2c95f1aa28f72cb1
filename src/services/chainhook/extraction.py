"""
Invoice id extraction strategies.

The invoice contract reports the id of a newly created invoice either as
the direct return value of ``create-invoice`` (``(ok (tuple (id u42)))``)
or in an ``invoice-created`` print event. Each strategy is a pure
function ``ChainTransaction -> str | None``; ``extract_identifier`` runs
them in order and takes the first hit.
"""

import json
import re
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from ...core.errors import ClarityDecodeError
from ..contract.clarity import decode_clarity_hex
from .payload import ChainTransaction

Strategy = Callable[[ChainTransaction], Optional[str]]

INVOICE_CREATED_MARKER = "invoice-created"

CONTRACT_EVENT_TYPES = {
    "smartcontractevent",
    "smart_contract_event",
    "smart_contract_log",
    "contract_log",
    "contract_event",
    "print_event",
}

# (id u42) in Clarity repr, "id": 42 / "id":"u42" in serialized JSON
_REPR_ID_PATTERN = re.compile(r"\(id\s+u?(\d+)\)")
_JSON_ID_PATTERN = re.compile(r"\"id\"\s*:\s*\"?u?(\d+)\"?")

ID_KEYS = {"id"}
VALUE_CARRIER_KEYS = {"u", "value"}
MAX_SEARCH_DEPTH = 12


def _coerce_identifier(value: Any) -> Optional[str]:
    """Return the decimal string of a non-negative integer-like value."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value) if value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("u"):
            text = text[1:]
        if text.isdigit():
            return str(int(text))
    return None


def _nesting_depth(text: str, position: int) -> int:
    prefix = text[:position]
    return prefix.count("(") - prefix.count(")")


def id_from_text(text: str) -> Optional[str]:
    """
    Pattern-match the innermost ``id`` field of a Clarity repr or JSON string.

    When several ``(id uN)`` fields are present, the most deeply nested one
    wins; at equal depth the first one does.
    """
    matches = list(_REPR_ID_PATTERN.finditer(text))
    if matches:
        innermost = max(matches, key=lambda m: _nesting_depth(text, m.start()))
        return str(int(innermost.group(1)))

    match = _JSON_ID_PATTERN.search(text)
    if match:
        return str(int(match.group(1)))
    return None


def _carried_value(value: Any, depth: int, visited: set) -> Optional[str]:
    """Read an id out of a value found under an ``id`` key."""
    direct = _coerce_identifier(value)
    if direct is not None:
        return direct
    if depth > MAX_SEARCH_DEPTH or not isinstance(value, dict) or id(value) in visited:
        return None
    visited.add(id(value))
    for key in VALUE_CARRIER_KEYS:
        if key in value:
            found = _carried_value(value[key], depth + 1, visited)
            if found is not None:
                return found
    return None


def find_id_in_object(obj: Any, max_depth: int = MAX_SEARCH_DEPTH) -> Optional[str]:
    """
    Best-effort search of a decoded payload for an id field.

    Walks dicts and lists up to ``max_depth`` levels, skipping nodes
    already visited. A hit is a key named ``id`` whose value is an
    integer-like string or number, directly or through ``u``/``value``
    carrier fields (``{"id": {"type": "uint", "value": "42"}}``).
    """
    visited: set = set()
    stack = [(obj, 0)]

    while stack:
        node, depth = stack.pop(0)
        if depth > max_depth:
            continue
        if isinstance(node, (dict, list)):
            if id(node) in visited:
                continue
            visited.add(id(node))

        if isinstance(node, dict):
            for key, value in node.items():
                if key in ID_KEYS:
                    found = _carried_value(value, depth + 1, set())
                    if found is not None:
                        return found
            for value in node.values():
                if isinstance(value, (dict, list)):
                    stack.append((value, depth + 1))
        elif isinstance(node, list):
            for item in node:
                if isinstance(item, (dict, list)):
                    stack.append((item, depth + 1))

    return None


def find_identifier(payload: Any) -> Optional[str]:
    """Extract an id from either a repr string or a decoded object."""
    if payload is None:
        return None
    if isinstance(payload, str):
        if payload.startswith("0x"):
            try:
                return find_id_in_object(decode_clarity_hex(payload))
            except ClarityDecodeError:
                return None
        return id_from_text(payload)

    found = find_id_in_object(payload)
    if found is not None:
        return found

    # Objects wrapping a repr string, e.g. {"repr": "(ok (tuple (id u1)))", "hex": "0x..."}
    found = id_from_text(json.dumps(payload, default=str))
    if found is not None:
        return found

    if isinstance(payload, dict) and isinstance(payload.get("hex"), str):
        return find_identifier(payload["hex"])
    return None


def is_failed_result(result: Any) -> bool:
    """True for an ``(err ...)`` response, in repr, hex or decoded form."""
    if isinstance(result, str):
        text = result.strip()
        if text.startswith("0x"):
            try:
                return decode_clarity_hex(text).get("success") is False
            except ClarityDecodeError:
                return False
        return text.startswith("(err")

    if isinstance(result, dict):
        if result.get("success") is False:
            return True
        for key in ("repr", "hex"):
            if isinstance(result.get(key), str) and is_failed_result(result[key]):
                return True
    return False


def extract_from_result(tx: ChainTransaction) -> Optional[str]:
    """Strategy 1: the function's direct return value, only when it succeeded."""
    if tx.success is False or is_failed_result(tx.result):
        return None
    return find_identifier(tx.result)


def _event_type(event: dict) -> str:
    kind = event.get("type", "")
    if isinstance(kind, dict):
        kind = kind.get("type", "")
    return str(kind).lower()


def _event_payload(event: dict) -> Any:
    """Event body, with a decoded form of any raw Clarity value added."""
    payload = event.get("data") or event.get("metadata") or event.get("contract_event") or event
    if not isinstance(payload, dict):
        return payload

    raw_value = payload.get("raw_value") or payload.get("hex")
    if isinstance(raw_value, str) and raw_value.startswith("0x") and "decoded" not in payload:
        try:
            payload = {**payload, "decoded": decode_clarity_hex(raw_value)}
        except ClarityDecodeError as e:
            logger.debug("Could not decode raw event value", error=str(e))
    return payload


def extract_from_event_log(tx: ChainTransaction) -> Optional[str]:
    """Strategy 2: an ``invoice-created`` contract print event."""
    # Events of an aborted transaction were rolled back
    if tx.success is False:
        return None
    for event in tx.events:
        if not isinstance(event, dict) or _event_type(event) not in CONTRACT_EVENT_TYPES:
            continue

        payload = _event_payload(event)
        serialized = json.dumps(payload, default=str)
        if INVOICE_CREATED_MARKER not in serialized:
            continue

        found = find_identifier(payload)
        if found is not None:
            return found
    return None


DEFAULT_STRATEGIES: list[Strategy] = [extract_from_result, extract_from_event_log]


def extract_identifier(
    tx: ChainTransaction,
    strategies: Iterable[Strategy] = DEFAULT_STRATEGIES,
) -> Optional[str]:
    """
    Run strategies in order and return the first identifier found.

    A strategy that raises on a malformed payload counts as a miss.
    """
    for strategy in strategies:
        try:
            identifier = strategy(tx)
        except Exception as e:
            logger.warning(
                "Extraction strategy failed",
                strategy=getattr(strategy, "__name__", repr(strategy)),
                tx_id=tx.tx_id,
                error=str(e),
            )
            continue
        if identifier is not None:
            return identifier
    return None
