"""
Normalization of chainhook webhook bodies.

Chainhook deliveries come in a few shapes depending on the service
version that produced them:

- v1: ``{"apply": [{"block_identifier": ..., "transactions": [...]}], "rollback": [...]}``
  with ``metadata.kind.type`` / ``metadata.result`` / ``metadata.receipt.events``
- v2: ``{"event": {"apply": [...]}, "chainhook": {...}}`` with
  ``metadata.type`` / ``metadata.result.repr`` / ``operations[*]`` contract logs
- flat: ``{"transactions": [...]}`` or a bare list of transactions

All of them are flattened into ``ChainTransaction`` records in document
order. Rollback blocks are ignored.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from loguru import logger

# Transaction kinds whose payload carries a contract result and event log
DATA_KINDS = {"contractcall", "contract_call"}


@dataclass
class ChainTransaction:
    tx_id: Optional[str]
    kind: Optional[str]
    result: Any = None
    events: list = field(default_factory=list)
    block_height: Optional[int] = None
    # False when the node reports the transaction as failed or aborted; None when unreported
    success: Optional[bool] = None

    @property
    def is_data_bearing(self) -> bool:
        return self.kind is not None and self.kind.lower() in DATA_KINDS


def iter_blocks(batch: Any) -> Iterator[dict]:
    """Yield the applied blocks of a delivery, whatever its envelope."""
    if isinstance(batch, list):
        yield {"transactions": batch}
        return
    if not isinstance(batch, dict):
        return

    envelope = batch.get("event") if isinstance(batch.get("event"), dict) else batch

    if isinstance(envelope.get("apply"), list):
        for block in envelope["apply"]:
            if isinstance(block, dict):
                yield block
    elif isinstance(envelope.get("transactions"), list):
        yield envelope


def iter_transactions(batch: Any) -> Iterator[ChainTransaction]:
    """
    Flatten a delivery into transactions, in document order.

    Entries that are not objects are logged and skipped.
    """
    for block in iter_blocks(batch):
        block_height = _block_height(block)
        for raw in block.get("transactions") or []:
            if not isinstance(raw, dict):
                logger.warning("Skipping malformed transaction entry", entry_type=type(raw).__name__)
                continue
            yield parse_transaction(raw, block_height)


def parse_transaction(raw: dict, block_height: Optional[int] = None) -> ChainTransaction:
    metadata = raw.get("metadata") if isinstance(raw.get("metadata"), dict) else {}

    return ChainTransaction(
        tx_id=_tx_id(raw),
        kind=_kind(raw, metadata),
        result=metadata.get("result", raw.get("result")),
        events=_events(raw, metadata),
        block_height=block_height,
        success=_success(raw, metadata),
    )


def _success(raw: dict, metadata: dict) -> Optional[bool]:
    for source in (metadata, raw):
        if isinstance(source.get("success"), bool):
            return source["success"]
        # v2 reports "success" or an "abort_by_..." status
        if isinstance(source.get("status"), str):
            return source["status"].lower() == "success"
    return None


def _block_height(block: dict) -> Optional[int]:
    ident = block.get("block_identifier")
    if isinstance(ident, dict) and isinstance(ident.get("index"), int):
        return ident["index"]
    return None


def _tx_id(raw: dict) -> Optional[str]:
    ident = raw.get("transaction_identifier")
    if isinstance(ident, dict) and ident.get("hash"):
        return str(ident["hash"])
    for key in ("transactionId", "tx_id", "txId", "txid"):
        if raw.get(key):
            return str(raw[key])
    return None


def _kind(raw: dict, metadata: dict) -> Optional[str]:
    for candidate in (metadata.get("kind"), metadata.get("type"), raw.get("kind"), raw.get("type")):
        if isinstance(candidate, dict):
            candidate = candidate.get("type")
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _events(raw: dict, metadata: dict) -> list:
    events = []

    receipt = metadata.get("receipt")
    if isinstance(receipt, dict) and isinstance(receipt.get("events"), list):
        events.extend(receipt["events"])

    # v2 deliveries carry contract logs as operations
    if isinstance(raw.get("operations"), list):
        events.extend(op for op in raw["operations"] if isinstance(op, dict) and op.get("type"))

    if isinstance(raw.get("events"), list):
        events.extend(raw["events"])

    return events
