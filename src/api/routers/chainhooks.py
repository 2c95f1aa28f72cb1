from fastapi import APIRouter, Body, Depends, status

from ..deps import get_chainhooks_client
from ...core.config import settings
from ...services.chainhook.client import ChainhooksClient, build_default_definition

router = APIRouter(prefix="/chainhooks", tags=["chainhooks"])


def default_definition() -> dict:
    return build_default_definition(
        contract_id=settings.contract_id,
        network=settings.stacks_network,
        webhook_url=settings.webhook_url,
    )


@router.get("/status")
async def chainhooks_status(client: ChainhooksClient = Depends(get_chainhooks_client)):
    return await client.get_status()


@router.get("")
async def list_chainhooks(client: ChainhooksClient = Depends(get_chainhooks_client)):
    hooks = await client.list_chainhooks()
    return {"total": len(hooks), "chainhooks": hooks}


@router.get("/definition")
async def get_default_definition():
    """Default subscription for the configured invoice contract"""
    return default_definition()


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_chainhook(
    definition: dict | None = Body(default=None),
    client: ChainhooksClient = Depends(get_chainhooks_client),
):
    """Register a chainhook; without a body the default invoice subscription is used"""
    return await client.register_chainhook(definition or default_definition())


@router.delete("/{uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chainhook(uuid: str, client: ChainhooksClient = Depends(get_chainhooks_client)):
    await client.delete_chainhook(uuid)


@router.patch("/{uuid}")
async def toggle_chainhook(
    uuid: str,
    enabled: bool = Body(..., embed=True),
    client: ChainhooksClient = Depends(get_chainhooks_client),
):
    """
    Enable or disable a chainhook.

    Example request:
        PATCH /chainhooks/8f2c...  {"enabled": false}
    """
    await client.enable_chainhook(uuid, enabled)
    return {"uuid": uuid, "enabled": enabled}
