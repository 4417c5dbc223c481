# helpers/hubspot_oauth.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from helpers import hubspot_config
from helpers.errors import AuthExchangeError, NotFoundError, PersistenceError, UpstreamError
from helpers.install_store import PortalId, get_install, to_portal_id, upsert_install

logger = logging.getLogger("hubspot_auth")


class TokenData(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = 1800


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)

def _aware(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes; everything is stored in UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def _as_int(v, default=1800):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def is_expired(install, now: Optional[datetime] = None) -> bool:
    return _aware(install.expires_at) <= (now or _now())

# ─────────────────────────────────────────────────────────────────────────────
# OAuth
# ─────────────────────────────────────────────────────────────────────────────

def get_oauth_url(redirect_uri: str, state: Optional[str] = None) -> str:
    cfg = hubspot_config.hubspot_cfg()
    params = {
        "client_id": cfg["client_id"],
        "redirect_uri": redirect_uri,
        "scope": cfg["scope"],
    }
    if state:
        params["state"] = state
    return f'{cfg["auth_url"]}?{httpx.QueryParams(params)}'


async def _token_request(data: Dict[str, Any], grant: str) -> TokenData:
    cfg = hubspot_config.hubspot_cfg()
    payload = {
        **data,
        "grant_type": grant,
        "client_id": cfg["client_id"],
        "client_secret": cfg["client_secret"],
    }
    try:
        async with hubspot_config.http_client() as client:
            r = await client.post(cfg["token_url"], data=payload)
    except httpx.HTTPError as e:
        logger.error("hubspot %s request failed: %s", grant, e)
        raise UpstreamError(f"{grant} request failed: {e}") from e

    if not r.is_success:
        logger.error("hubspot %s rejected: %s %s", grant, r.status_code, r.text[:300])
        raise AuthExchangeError(f"{grant} rejected: {r.status_code} {r.text[:300]}")

    try:
        j = r.json()
    except ValueError as e:
        logger.error("hubspot %s non-JSON body: %s %s", grant, r.status_code, r.text[:300])
        raise UpstreamError(f"{grant} returned non-JSON body: {r.status_code}", status=r.status_code) from e
    if not j.get("access_token"):
        raise AuthExchangeError(f"{grant} response carried no access_token")
    return TokenData(
        access_token=j["access_token"],
        refresh_token=j.get("refresh_token"),
        expires_in=_as_int(j.get("expires_in")),
    )


async def exchange_code(code: str, redirect_uri: str) -> TokenData:
    """Trade a one-time authorization code for an access/refresh token pair."""
    logger.info("exchanging auth code")
    return await _token_request({"code": code, "redirect_uri": redirect_uri}, "authorization_code")


async def refresh(refresh_token: str) -> TokenData:
    """
    Trade a refresh token for a new pair. A rejected refresh token is terminal
    for the install until the portal re-authorizes.
    """
    return await _token_request({"refresh_token": refresh_token}, "refresh_token")

# ─────────────────────────────────────────────────────────────────────────────
# Install lifecycle
# ─────────────────────────────────────────────────────────────────────────────

async def store_install(
    portal_id: PortalId,
    access_token: str,
    refresh_token: str,
    expires_in: int,
) -> Dict[str, Any]:
    expires_at = _now() + timedelta(seconds=int(expires_in))
    try:
        install = await upsert_install(portal_id, access_token, refresh_token, expires_at)
    except PersistenceError as e:
        logger.error("storing install failed portal=%s: %s", portal_id, e)
        return {"success": False, "error": str(e)}
    return {"success": True, "install": install}


async def get_valid_access_token(portal_id: PortalId) -> str:
    """
    Stored token for the portal, refreshed first if it has expired.

    Refresh is lazy and unsynchronized: two requests hitting an expired
    install at once may both refresh, and the later write wins.
    """
    pid = to_portal_id(portal_id)
    install = await get_install(pid)
    if not install:
        raise NotFoundError(f"no install for portal {pid}")

    if not is_expired(install):
        return install.access_token

    logger.info("access token expired portal=%s exp=%s; refreshing", pid, install.expires_at)
    tokens = await refresh(install.refresh_token)
    new_refresh = tokens.refresh_token or install.refresh_token
    expires_at = _now() + timedelta(seconds=tokens.expires_in)
    await upsert_install(pid, tokens.access_token, new_refresh, expires_at)
    logger.info("refreshed portal=%s exp=%s", pid, expires_at)
    return tokens.access_token
