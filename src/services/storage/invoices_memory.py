"""
In-memory invoice store (for demo and tests).
Contents are lost on restart; use the SQLite store for anything durable.
"""
import threading
from datetime import datetime, UTC
from typing import Dict, Optional

from ...core.errors import InvoiceNotFoundError
from ...models.invoice import InvoiceRecord, InvoiceStatus
from .invoice_store_base import InvoiceStoreBase


class InMemoryInvoiceStore(InvoiceStoreBase):
    def __init__(self):
        super().__init__()
        self._invoices: Dict[str, InvoiceRecord] = {}
        # Guards the dict itself; readers iterate over a snapshot
        self._records_lock = threading.Lock()

    def _snapshot(self) -> list[InvoiceRecord]:
        with self._records_lock:
            return list(self._invoices.values())

    def _store(self, record: InvoiceRecord) -> None:
        with self._records_lock:
            self._invoices[record.name] = record

    def put(self, name: str, tx_id: str) -> InvoiceRecord:
        with self.name_lock(name):
            existing = self._invoices.get(name)
            record = InvoiceRecord(
                name=name,
                tx_id=tx_id,
                invoice_id=None,
                status=InvoiceStatus.PENDING,
                created_at=existing.created_at if existing else datetime.now(UTC),
            )
            self._store(record)
            return record

    def get_by_name(self, name: str) -> Optional[InvoiceRecord]:
        return self._invoices.get(name)

    def get_by_transaction_id(self, tx_id: str) -> Optional[InvoiceRecord]:
        matches = [r for r in self._snapshot() if r.tx_id == tx_id]
        if not matches:
            return None
        return max(matches, key=lambda r: r.created_at)

    def confirm(self, name: str, invoice_id: str) -> InvoiceRecord:
        with self.name_lock(name):
            existing = self._invoices.get(name)
            if existing is None:
                raise InvoiceNotFoundError(name)
            if existing.status == InvoiceStatus.CONFIRMED:
                return existing

            record = existing.model_copy(
                update={"invoice_id": invoice_id, "status": InvoiceStatus.CONFIRMED}
            )
            self._store(record)
            return record

    def list_all(self) -> list[InvoiceRecord]:
        return sorted(self._snapshot(), key=lambda r: r.created_at, reverse=True)

    def clear(self) -> None:
        with self._records_lock:
            self._invoices.clear()
