# helpers/hubspot_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from helpers import hubspot_config
from helpers.errors import AuthExchangeError, MissingTokenError, NotFoundError, UpstreamError
from helpers.hubspot_oauth import get_valid_access_token
from helpers.install_store import PortalId

logger = logging.getLogger("hubspot_api")

DEAL_PROPS = ["dealname", "amount", "closedate", "dealstage", "hubspot_owner_id"]
CONTACT_PROPS = ["firstname", "lastname", "email", "company"]


def _redact(path: str) -> str:
    # token-info lookups carry the token in the path
    if "/access-tokens/" in path:
        return path.split("/access-tokens/")[0] + "/access-tokens/***"
    return path


async def _get(path: str, token: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    url = f'{hubspot_config.hubspot_cfg()["api_base"]}{path}'
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        async with hubspot_config.http_client() as client:
            r = await client.get(url, headers=headers, params=params)
    except httpx.HTTPError as e:
        logger.error("hubspot GET %s failed: %s", _redact(path), e)
        raise UpstreamError(f"GET {_redact(path)} failed: {e}") from e

    if not r.is_success:
        logger.error("hubspot GET %s -> %s %s", _redact(path), r.status_code, r.text[:300])
        raise UpstreamError(f"HubSpot API error: {r.status_code}", status=r.status_code)
    try:
        return r.json()
    except ValueError as e:
        logger.error("hubspot GET %s -> %s non-JSON body: %s", _redact(path), r.status_code, r.text[:300])
        raise UpstreamError(f"HubSpot returned non-JSON body: {r.status_code}", status=r.status_code) from e


async def _token_for(portal_id: PortalId) -> str:
    try:
        return await get_valid_access_token(portal_id)
    except (NotFoundError, AuthExchangeError) as e:
        logger.warning("no usable token for portal=%s: %s", portal_id, e)
        raise MissingTokenError(str(e)) from e

# ─────────────────────────────────────────────────────────────────────────────
# Token-level fetchers (single page, no pagination)
# ─────────────────────────────────────────────────────────────────────────────

async def get_account_info(token: str) -> Dict[str, Any]:
    """Metadata for a token: hub_id, user, scopes, app_id, expires_in."""
    return await _get(f"/oauth/v1/access-tokens/{token}")


async def fetch_deals(token: str, limit: int = 10) -> Dict[str, Any]:
    return await _get(
        "/crm/v3/objects/deals",
        token,
        {"limit": limit, "archived": "false", "properties": ",".join(DEAL_PROPS)},
    )


async def fetch_contacts(token: str, limit: int = 10) -> Dict[str, Any]:
    return await _get(
        "/crm/v3/objects/contacts",
        token,
        {"limit": limit, "archived": "false", "properties": ",".join(CONTACT_PROPS)},
    )


async def fetch_owners(token: str) -> Dict[str, Any]:
    return await _get("/crm/v3/owners", token, {"limit": 100, "archived": "false"})

# ─────────────────────────────────────────────────────────────────────────────
# Portal-level fetchers (resolve a valid token first)
# ─────────────────────────────────────────────────────────────────────────────

async def get_deals(portal_id: PortalId, limit: int = 10) -> Dict[str, Any]:
    return await fetch_deals(await _token_for(portal_id), limit)


async def get_contacts(portal_id: PortalId, limit: int = 10) -> Dict[str, Any]:
    return await fetch_contacts(await _token_for(portal_id), limit)


async def get_owners(portal_id: PortalId) -> Dict[str, Any]:
    return await fetch_owners(await _token_for(portal_id))


async def get_account_info_for_portal(portal_id: PortalId) -> Dict[str, Any]:
    return await get_account_info(await _token_for(portal_id))
