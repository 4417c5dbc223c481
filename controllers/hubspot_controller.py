import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Query

from helpers import hubspot_client
from helpers.errors import NotFoundError
from helpers.get_admin import get_admin
from helpers.install_store import delete_install, get_install, list_installs, strip_tokens

router = APIRouter()
logger = logging.getLogger("installs")

# ──────────────────────────────────────────────────────────────────────────────
# Installs (tokens never leave this boundary)
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/hubspot/installs")
async def get_all_installs(_admin: Annotated[Any, Depends(get_admin)]):
    rows = await list_installs()
    return {"success": True, "installs": [strip_tokens(r) for r in rows]}


@router.get("/hubspot/installs/{portal_id}")
async def get_one_install(portal_id: int):
    install = await get_install(portal_id)
    if not install:
        raise NotFoundError(f"no install for portal {portal_id}")
    return {"success": True, "install": strip_tokens(install)}


@router.delete("/hubspot/installs/{portal_id}")
async def remove_install(portal_id: int, _admin: Annotated[Any, Depends(get_admin)]):
    install = await delete_install(portal_id)
    if not install:
        raise NotFoundError(f"no install for portal {portal_id}")
    return {"success": True, "install": strip_tokens(install)}

# ──────────────────────────────────────────────────────────────────────────────
# CRM reads (one page each; follow `paging.next.after` yourself if needed)
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/hubspot/{portal_id}/account")
async def account_info(portal_id: int) -> Dict[str, Any]:
    info = await hubspot_client.get_account_info_for_portal(portal_id)
    info.pop("token", None)
    return info


@router.get("/hubspot/{portal_id}/deals")
async def deals(portal_id: int, limit: int = Query(10, ge=1, le=100)):
    return await hubspot_client.get_deals(portal_id, limit)


@router.get("/hubspot/{portal_id}/contacts")
async def contacts(portal_id: int, limit: int = Query(10, ge=1, le=100)):
    return await hubspot_client.get_contacts(portal_id, limit)


@router.get("/hubspot/{portal_id}/owners")
async def owners(portal_id: int):
    return await hubspot_client.get_owners(portal_id)
