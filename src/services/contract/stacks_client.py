"""
Read-only calls against the invoice smart contract through the Stacks node API.
"""

from typing import Optional

import httpx
from loguru import logger

from ...core.config import Settings, settings as default_settings
from ...core.errors import ChainhooksApiError
from .clarity import decode_clarity_hex, serialize_uint


def split_contract_id(contract_id: str) -> tuple[str, str]:
    """Split ``ADDRESS.contract-name`` into its parts."""
    address, sep, name = contract_id.partition(".")
    if not sep or not address or not name:
        raise ValueError(f"Invalid contract id: {contract_id!r} (expected ADDRESS.contract-name)")
    return address, name


class StacksContractClient:
    def __init__(self, api_url: str, contract_id: str, timeout: float = 10.0):
        self.api_url = api_url.rstrip("/")
        self.contract_address, self.contract_name = split_contract_id(contract_id)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "StacksContractClient":
        return cls(
            api_url=settings.resolved_stacks_api_url(),
            contract_id=settings.contract_id,
            timeout=settings.http_timeout,
        )

    async def call_read_only(self, function_name: str, arguments: list[str], sender: Optional[str] = None) -> dict:
        """
        Call a read-only contract function.

        Args:
            function_name: Contract function to call
            arguments: Hex-serialized Clarity arguments
            sender: Principal to call as (defaults to the contract address)

        Returns:
            Decoded Clarity result
        """
        url = (
            f"{self.api_url}/v2/contracts/call-read/"
            f"{self.contract_address}/{self.contract_name}/{function_name}"
        )
        body = {"sender": sender or self.contract_address, "arguments": arguments}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.post(url, json=body)
        except httpx.HTTPError as e:
            raise ChainhooksApiError(f"Stacks API unreachable: {e}") from e

        if r.status_code >= 400:
            raise ChainhooksApiError(
                f"Stacks API returned {r.status_code} for {function_name}",
                status_code=r.status_code,
                body=r.text,
            )

        data = r.json()
        if not data.get("okay"):
            cause = data.get("cause", "unknown error")
            logger.warning("Read-only call rejected", function=function_name, cause=cause)
            raise ChainhooksApiError(f"Read-only call {function_name} failed: {cause}", status_code=r.status_code)

        return decode_clarity_hex(data["result"])

    async def get_invoice(self, invoice_id: int, sender: Optional[str] = None) -> dict:
        return await self.call_read_only("get-invoice", [serialize_uint(invoice_id)], sender)
