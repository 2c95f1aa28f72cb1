"""
Error taxonomy for the invoice relay.

Direct API callers see these mapped to HTTP responses by the handlers in
``src.api.main``; the webhook reconciler recovers from all of them per
transaction.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for all relay errors."""


class InvoiceValidationError(RelayError):
    """Missing or malformed fields on invoice creation."""


class InvoiceNotFoundError(RelayError):
    """Lookup or confirm against an unknown invoice name."""

    def __init__(self, name: str):
        super().__init__(f"Invoice not found: {name}")
        self.name = name


class ExtractionFailure(RelayError):
    """No invoice identifier could be derived from a transaction payload."""

    def __init__(self, tx_id: str, reason: str = "no id field in result or event log"):
        super().__init__(f"Could not extract invoice id for {tx_id}: {reason}")
        self.tx_id = tx_id
        self.reason = reason


class StoreUnavailableError(RelayError):
    """The persistence backend cannot be reached or rejected the operation."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.original_exception = original_exception


class ChainhooksApiError(RelayError):
    """Non-success response from the Chainhooks or Stacks APIs."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ClarityDecodeError(RelayError):
    """Malformed or unsupported Clarity value encoding."""
