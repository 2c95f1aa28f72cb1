"""
Abstract base class for invoice store implementations.

Defines the interface the API and the chainhook reconciler depend on,
so the persistence backend is chosen once at startup and injected.
"""

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import contextmanager
from typing import Optional

from ...models.invoice import InvoiceRecord, InvoiceStatus


class InvoiceStoreBase(ABC):
    """
    Abstract base class for invoice persistence.

    Implementations can use:
    - In-memory storage (for testing/demo)
    - SQLite (for single-instance deployments)

    Writes to the same invoice name are serialized through ``name_lock``;
    writes to different names proceed independently.
    """

    def __init__(self):
        self._locks_guard = threading.Lock()
        # One lock per name ever written; bounded by the record count since records are never deleted
        self._name_locks: dict[str, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def name_lock(self, name: str):
        """Hold the write lock for a single invoice name."""
        with self._locks_guard:
            lock = self._name_locks[name]
        with lock:
            yield

    def open(self) -> None:
        """Acquire backend resources. Called once at application startup."""

    def close(self) -> None:
        """Release backend resources. Called once at application shutdown."""

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @abstractmethod
    def put(self, name: str, tx_id: str) -> InvoiceRecord:
        """
        Insert or replace the invoice for ``name``.

        Re-issuing an existing name replaces the pending transaction id,
        clears any confirmed invoice id and resets the status to pending.

        Args:
            name: Client-assigned unique invoice name
            tx_id: Transaction id expected to confirm this invoice

        Returns:
            The stored record
        """
        pass

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[InvoiceRecord]:
        """
        Get an invoice by name.

        Returns:
            The record, or None if the name is unknown
        """
        pass

    @abstractmethod
    def get_by_transaction_id(self, tx_id: str) -> Optional[InvoiceRecord]:
        """
        Get an invoice whose pending transaction id matches ``tx_id``.

        Several records may share a transaction id; one of them is
        returned (the most recently created).

        Returns:
            A matching record, or None
        """
        pass

    @abstractmethod
    def confirm(self, name: str, invoice_id: str) -> InvoiceRecord:
        """
        Mark an invoice confirmed with the on-chain invoice id.

        Confirming an already confirmed invoice is a no-op: the first
        confirmed invoice id is kept and the record is returned unchanged.

        Raises:
            InvoiceNotFoundError: if the name is unknown
        """
        pass

    @abstractmethod
    def list_all(self) -> list[InvoiceRecord]:
        """List all invoices, newest first."""
        pass

    def query_by_status(self, status: InvoiceStatus) -> list[InvoiceRecord]:
        """List invoices in the given status, newest first."""
        return [record for record in self.list_all() if record.status == status]
