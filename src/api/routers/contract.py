from fastapi import APIRouter, Depends, Path

from ..deps import get_contract_client
from ...services.contract.stacks_client import StacksContractClient

router = APIRouter(prefix="/contract", tags=["contract"])


@router.get("/invoices/{invoice_id}")
async def read_contract_invoice(
    invoice_id: int = Path(ge=0),
    sender: str | None = None,
    client: StacksContractClient = Depends(get_contract_client),
):
    """Read an invoice straight from the contract via get-invoice"""
    result = await client.get_invoice(invoice_id, sender=sender)
    return {
        "contract_id": f"{client.contract_address}.{client.contract_name}",
        "invoice_id": invoice_id,
        "result": result,
    }
