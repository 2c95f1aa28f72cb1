"""
SQLite-based invoice store for production use.

Provides persistent storage of invoices keyed by name, with a secondary
index on the pending transaction id used by the chainhook reconciler.
"""

import sqlite3
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

from loguru import logger

from ...core.errors import InvoiceNotFoundError, StoreUnavailableError
from ...models.invoice import InvoiceRecord, InvoiceStatus
from .invoice_store_base import InvoiceStoreBase

_COLUMNS = "name, tx_id, invoice_id, status, created_at"


class SQLiteInvoiceStore(InvoiceStoreBase):
    """
    SQLite-backed invoice store with persistent storage.

    Features:
    - Persistent storage across application restarts
    - Upsert keyed by invoice name (re-issuance resets to pending)
    - Lookup by pending transaction id
    - Every write is committed before the call returns
    """

    def __init__(self, db_path: str = "data/app.db", timeout: float = 5.0):
        """
        Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (default: data/app.db)
            timeout: Seconds to wait on a locked database before failing
        """
        super().__init__()
        self.db_path = db_path
        self.timeout = timeout
        self._initialized = False

    def open(self) -> None:
        """Create the data directory and invoices table if they don't exist"""
        if self._initialized:
            return

        parent = Path(self.db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot create data directory {parent}: {e}", e) from e

        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS invoices (
                    name TEXT PRIMARY KEY,
                    tx_id TEXT NOT NULL,
                    invoice_id TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL,
                    CHECK (status IN ('pending', 'confirmed'))
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_invoices_tx_id
                ON invoices(tx_id)
            """)

            conn.commit()

        self._initialized = True
        logger.info("SQLite invoice store ready", db_path=self.db_path)

    def close(self) -> None:
        # Connections are per-operation; nothing is held between calls.
        self._initialized = False

    def _connection(self):
        """Open a connection with row factory; sqlite errors become StoreUnavailableError"""
        return _ConnectionScope(self.db_path, self.timeout)

    def _ensure_open(self) -> None:
        if not self._initialized:
            self.open()

    def put(self, name: str, tx_id: str) -> InvoiceRecord:
        """
        Insert or replace the invoice for ``name``.

        Args:
            name: Client-assigned unique invoice name
            tx_id: Pending transaction id

        Returns:
            The stored record
        """
        self._ensure_open()
        created_at = datetime.now(UTC).isoformat()

        with self.name_lock(name), self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO invoices (name, tx_id, invoice_id, status, created_at)
                VALUES (?, ?, NULL, 'pending', ?)
                ON CONFLICT(name) DO UPDATE SET
                    tx_id = excluded.tx_id,
                    invoice_id = NULL,
                    status = 'pending'
            """, (name, tx_id, created_at))
            conn.commit()

            row = cursor.execute(
                f"SELECT {_COLUMNS} FROM invoices WHERE name = ?", (name,)
            ).fetchone()

        return _row_to_record(row)

    def get_by_name(self, name: str) -> Optional[InvoiceRecord]:
        self._ensure_open()
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM invoices WHERE name = ?", (name,)
            ).fetchone()

        return _row_to_record(row) if row is not None else None

    def get_by_transaction_id(self, tx_id: str) -> Optional[InvoiceRecord]:
        self._ensure_open()
        with self._connection() as conn:
            row = conn.execute(f"""
                SELECT {_COLUMNS} FROM invoices
                WHERE tx_id = ?
                ORDER BY created_at DESC
                LIMIT 1
            """, (tx_id,)).fetchone()

        return _row_to_record(row) if row is not None else None

    def confirm(self, name: str, invoice_id: str) -> InvoiceRecord:
        """
        Mark an invoice as confirmed.

        Args:
            name: Invoice name
            invoice_id: Identifier emitted by the contract

        Raises:
            InvoiceNotFoundError: if no invoice has this name
        """
        self._ensure_open()

        with self.name_lock(name), self._connection() as conn:
            cursor = conn.cursor()
            # Only pending rows change; a confirmed invoice id is never overwritten
            cursor.execute("""
                UPDATE invoices
                SET invoice_id = ?,
                    status = 'confirmed'
                WHERE name = ? AND status = 'pending'
            """, (invoice_id, name))
            conn.commit()

            row = cursor.execute(
                f"SELECT {_COLUMNS} FROM invoices WHERE name = ?", (name,)
            ).fetchone()

        if row is None:
            raise InvoiceNotFoundError(name)
        return _row_to_record(row)

    def list_all(self) -> list[InvoiceRecord]:
        """List all invoices (ordered by creation time, newest first)."""
        self._ensure_open()
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM invoices ORDER BY created_at DESC"
            ).fetchall()

        return [_row_to_record(row) for row in rows]

    def query_by_status(self, status: InvoiceStatus) -> list[InvoiceRecord]:
        """
        Query invoices by status.

        Args:
            status: pending or confirmed

        Returns:
            List of invoices matching the status, newest first
        """
        self._ensure_open()
        with self._connection() as conn:
            rows = conn.execute(f"""
                SELECT {_COLUMNS} FROM invoices
                WHERE status = ?
                ORDER BY created_at DESC
            """, (InvoiceStatus(status).value,)).fetchall()

        return [_row_to_record(row) for row in rows]


class _ConnectionScope:
    """Context manager around a single sqlite3 connection."""

    def __init__(self, db_path: str, timeout: float):
        self.db_path = db_path
        self.timeout = timeout
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> sqlite3.Connection:
        try:
            self.conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open invoice database {self.db_path}: {e}", e) from e
        self.conn.row_factory = sqlite3.Row
        return self.conn

    def __exit__(self, exc_type, exc, tb):
        if self.conn is not None:
            self.conn.close()
        if exc is not None and isinstance(exc, sqlite3.Error):
            raise StoreUnavailableError(f"Invoice database error: {exc}", exc) from exc
        return False


def _row_to_record(row: sqlite3.Row) -> InvoiceRecord:
    return InvoiceRecord(
        name=row["name"],
        tx_id=row["tx_id"],
        invoice_id=row["invoice_id"],
        status=InvoiceStatus(row["status"]),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
