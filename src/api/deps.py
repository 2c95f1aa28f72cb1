import secrets

from fastapi import Header, HTTPException, Request, status

from ..core.config import settings
from ..services.chainhook.client import ChainhooksClient
from ..services.chainhook.reconciler import EventReconciler
from ..services.contract.stacks_client import StacksContractClient
from ..services.storage.invoice_store_base import InvoiceStoreBase


def get_store(request: Request) -> InvoiceStoreBase:
    """Invoice store opened by the application lifespan."""
    return request.app.state.store


def get_reconciler(request: Request) -> EventReconciler:
    return request.app.state.reconciler


def get_chainhooks_client() -> ChainhooksClient:
    return ChainhooksClient.from_settings(settings)


def get_contract_client() -> StacksContractClient:
    return StacksContractClient.from_settings(settings)


def verify_webhook_token(authorization: str | None = Header(default=None)) -> None:
    """Check the chainhook delivery bearer token when CHAINHOOK_WEBHOOK_TOKEN is set."""
    expected = settings.webhook_auth_token
    if not expected:
        return
    presented = (authorization or "").encode()
    if not secrets.compare_digest(presented, f"Bearer {expected}".encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing webhook token")
