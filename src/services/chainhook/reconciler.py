"""
Chainhook event reconciliation.

Matches transactions from a webhook delivery to pending invoices by
transaction id, extracts the on-chain invoice id and confirms the
invoice in the store. Processing is best-effort per transaction: a
malformed payload or a store failure on one transaction never stops the
rest of the batch.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from loguru import logger

from ...core.errors import ExtractionFailure, InvoiceNotFoundError
from ...models.invoice import InvoiceStatus
from ..storage.invoice_store_base import InvoiceStoreBase
from .extraction import DEFAULT_STRATEGIES, Strategy, extract_identifier
from .payload import iter_transactions


@dataclass
class ReconciliationReport:
    """Outcome of one delivery, for logging and tests."""

    transactions_seen: int = 0
    skipped: int = 0
    unmatched: int = 0
    already_confirmed: int = 0
    confirmed: list[tuple[str, str]] = field(default_factory=list)
    extraction_failures: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "transactions_seen": self.transactions_seen,
            "skipped": self.skipped,
            "unmatched": self.unmatched,
            "already_confirmed": self.already_confirmed,
            "confirmed": [{"name": name, "invoice_id": invoice_id} for name, invoice_id in self.confirmed],
            "extraction_failures": list(self.extraction_failures),
            "errors": list(self.errors),
        }


class EventReconciler:
    """
    Applies chainhook deliveries to the invoice store.

    Usage:
        reconciler = EventReconciler(store)
        report = reconciler.reconcile(payload)
    """

    def __init__(self, store: InvoiceStoreBase, strategies: Optional[Iterable[Strategy]] = None):
        self.store = store
        self.strategies = list(strategies) if strategies is not None else list(DEFAULT_STRATEGIES)

    def reconcile(self, batch: Any) -> ReconciliationReport:
        report = ReconciliationReport()

        for tx in iter_transactions(batch):
            report.transactions_seen += 1

            if not tx.is_data_bearing or not tx.tx_id:
                report.skipped += 1
                continue

            try:
                invoice = self.store.get_by_transaction_id(tx.tx_id)
            except Exception as e:
                logger.error("Invoice lookup failed; continuing with next transaction",
                             tx_id=tx.tx_id, error=str(e))
                report.errors.append({"tx_id": tx.tx_id, "error": str(e)})
                continue

            if invoice is None:
                report.unmatched += 1
                continue

            if invoice.status == InvoiceStatus.CONFIRMED:
                logger.debug("Invoice already confirmed", name=invoice.name, tx_id=tx.tx_id)
                report.already_confirmed += 1
                continue

            invoice_id = extract_identifier(tx, self.strategies)
            if invoice_id is None:
                failure = ExtractionFailure(tx.tx_id)
                logger.warning(
                    "No invoice id could be extracted; invoice stays pending",
                    name=invoice.name,
                    tx_id=tx.tx_id,
                    reason=failure.reason,
                )
                report.extraction_failures.append(invoice.name)
                continue

            try:
                self.store.confirm(invoice.name, invoice_id)
            except InvoiceNotFoundError:
                # Record vanished between lookup and confirm; not one we track anymore
                report.unmatched += 1
                continue
            except Exception as e:
                logger.error("Invoice confirm failed; continuing with next transaction",
                             name=invoice.name, tx_id=tx.tx_id, error=str(e))
                report.errors.append({"tx_id": tx.tx_id, "name": invoice.name, "error": str(e)})
                continue

            logger.info("Invoice confirmed", name=invoice.name, tx_id=tx.tx_id, invoice_id=invoice_id)
            report.confirmed.append((invoice.name, invoice_id))

        return report
