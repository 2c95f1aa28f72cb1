from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from ..deps import get_store
from ...core.errors import InvoiceNotFoundError, InvoiceValidationError
from ...models.invoice import CreateInvoiceRequest, InvoiceResponse, InvoiceStatus
from ...services.storage.invoice_store_base import InvoiceStoreBase

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_invoice(req: CreateInvoiceRequest, store: InvoiceStoreBase = Depends(get_store)):
    """
    Store a pending invoice awaiting on-chain confirmation.

    Re-posting an existing name re-issues it: the transaction id is
    replaced and the invoice goes back to pending.

    Example request:
    {
        "name": "inv-1",
        "txId": "0xabc..."
    }
    """
    if not req.name or not req.tx_id:
        raise InvoiceValidationError("Name and txId are required")

    await run_in_threadpool(store.put, req.name, req.tx_id)
    logger.info("Invoice pending", name=req.name, tx_id=req.tx_id)
    return {"message": "Invoice stored"}


@router.get("")
async def list_invoices(status: InvoiceStatus | None = None, store: InvoiceStoreBase = Depends(get_store)):
    """List invoices, newest first, optionally filtered by status"""
    if status is None:
        records = await run_in_threadpool(store.list_all)
    else:
        records = await run_in_threadpool(store.query_by_status, status)

    invoices = [InvoiceResponse.from_record(r).model_dump(by_alias=True, mode="json") for r in records]
    return {"total": len(invoices), "invoices": invoices}


@router.get("/{name}", response_model=InvoiceResponse)
async def get_invoice(name: str, store: InvoiceStoreBase = Depends(get_store)):
    record = await run_in_threadpool(store.get_by_name, name)
    if record is None:
        raise InvoiceNotFoundError(name)
    return InvoiceResponse.from_record(record)
