import json
from typing import Any, Optional

import httpx
from loguru import logger

from ...core.config import Settings, settings as default_settings
from ...core.errors import ChainhooksApiError

# Chainhooks API routes (relative to the network base URL)
STATUS_PATH = "/chainhooks/v1/"
CHAINHOOKS_PATH = "/chainhooks/v1/me/"

DEFAULT_DEFINITION_TEMPLATE = {
    "name": "Stacks Payroll Invoices",
    "chain": "stacks",
    "network": "mainnet",
    "filters": {
        "contract_id": "",
        "calls": [{"function_name": "create-invoice"}, {"function_name": "pay-invoice"}],
        "prints_contains": ['"event":"invoice-created"', '"event":"invoice-paid"'],
    },
    "options": {},
    "action": {"type": "webhook", "url": ""},
}


def build_default_definition(contract_id: str, network: str, webhook_url: str, name: Optional[str] = None) -> dict:
    """Subscription for the invoice contract's create/pay calls, delivered to our webhook."""
    definition = json.loads(json.dumps(DEFAULT_DEFINITION_TEMPLATE))
    definition["network"] = network
    definition["filters"]["contract_id"] = contract_id
    definition["action"]["url"] = webhook_url
    if name:
        definition["name"] = name
    return definition


class ChainhooksClient:
    """
    Thin async client for the Hiro Chainhooks API.

    Usage:
        client = ChainhooksClient.from_settings(settings)
        hooks = await client.list_chainhooks()
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        jwt: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.jwt = jwt
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "ChainhooksClient":
        return cls(
            base_url=settings.resolved_chainhooks_base_url(),
            api_key=settings.chainhooks_api_key,
            jwt=settings.chainhooks_jwt,
            timeout=settings.http_timeout,
        )

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        if self.jwt:
            headers["Authorization"] = f"Bearer {self.jwt}"
        return headers

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                r = await client.request(method, url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Chainhooks API unreachable", method=method, url=url, error=str(e))
            raise ChainhooksApiError(f"Chainhooks API unreachable: {e}") from e

        if r.status_code >= 400:
            logger.warning("Chainhooks API error", method=method, url=url, status_code=r.status_code)
            raise ChainhooksApiError(
                f"Chainhooks API returned {r.status_code} for {method} {path}",
                status_code=r.status_code,
                body=r.text,
            )

        if not r.content:
            return None
        return r.json()

    async def get_status(self) -> dict:
        return await self._request("GET", STATUS_PATH)

    async def list_chainhooks(self) -> list:
        result = await self._request("GET", CHAINHOOKS_PATH)
        if isinstance(result, dict):
            # Paginated responses wrap the list in "results"
            return result.get("results", [])
        return result or []

    async def register_chainhook(self, definition: dict) -> dict:
        logger.info("Registering chainhook", name=definition.get("name"), network=definition.get("network"))
        return await self._request("POST", CHAINHOOKS_PATH, definition)

    async def delete_chainhook(self, uuid: str) -> None:
        logger.info("Deleting chainhook", uuid=uuid)
        await self._request("DELETE", f"{CHAINHOOKS_PATH}{uuid}")

    async def enable_chainhook(self, uuid: str, enabled: bool) -> Any:
        """Turn delivery for a registered chainhook on or off."""
        logger.info("Toggling chainhook", uuid=uuid, enabled=enabled)
        return await self._request("PATCH", f"{CHAINHOOKS_PATH}{uuid}/enabled", {"enabled": enabled})
