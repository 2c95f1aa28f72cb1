from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from loguru import logger

from ..deps import get_reconciler, verify_webhook_token
from ...services.chainhook.reconciler import EventReconciler

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("", dependencies=[Depends(verify_webhook_token)])
async def receive_chainhook_event(request: Request, reconciler: EventReconciler = Depends(get_reconciler)):
    """
    Receive a chainhook delivery and confirm matching invoices.

    The sender always gets a receipt; reconciliation outcomes are only
    logged, since chainhook does not act on them.
    """
    try:
        payload = await request.json()
    except ValueError as e:
        logger.warning("Chainhook delivery is not valid JSON", error=str(e))
        return {"message": "Event received"}

    try:
        report = await run_in_threadpool(reconciler.reconcile, payload)
        logger.info("Chainhook delivery reconciled", **report.to_dict())
    except Exception as e:
        # Receipt is acknowledged regardless; unreconciled invoices stay pending
        logger.exception(f"Chainhook delivery reconciliation failed: {e}")

    return {"message": "Event received"}
