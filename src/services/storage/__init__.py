from ...core.config import Settings
from .invoice_store_base import InvoiceStoreBase
from .invoices_memory import InMemoryInvoiceStore
from .invoices_sqlite import SQLiteInvoiceStore


def create_invoice_store(settings: Settings) -> InvoiceStoreBase:
    """Build the invoice store selected by STORE_BACKEND (not opened yet)."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        return InMemoryInvoiceStore()
    if backend == "sqlite":
        return SQLiteInvoiceStore(settings.database_path)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.store_backend!r} (expected 'sqlite' or 'memory')")


__all__ = [
    "InvoiceStoreBase",
    "InMemoryInvoiceStore",
    "SQLiteInvoiceStore",
    "create_invoice_store",
]
