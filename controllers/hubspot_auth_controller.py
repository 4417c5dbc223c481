import logging
from typing import Dict, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse, JSONResponse

from helpers import hubspot_client, hubspot_oauth
from helpers.errors import UpstreamError
from helpers.hubspot_config import hubspot_cfg

router = APIRouter()
logger = logging.getLogger("hubspot_auth")

# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _redirect_uri(request: Request) -> str:
    configured = hubspot_cfg()["redirect_uri"]
    if configured:
        return configured
    return str(request.url_for("hubspot_oauth_callback"))

def _append_qs(url: str, params: Dict[str, str]) -> str:
    parts = list(urlsplit(url))
    q = dict(parse_qsl(parts[3], keep_blank_values=True))
    q.update({k: v for k, v in params.items() if v is not None})
    parts[3] = urlencode(q)
    return urlunsplit(parts)

# ─────────────────────────────────────────────────────────────────────────────
# OAuth start/callback
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/auth/hubspot/url")
async def get_install_url(request: Request, state: Optional[str] = Query(None)):
    return {"auth_url": hubspot_oauth.get_oauth_url(_redirect_uri(request), state)}


@router.get("/auth/hubspot/install")
async def start_install(request: Request):
    return RedirectResponse(url=hubspot_oauth.get_oauth_url(_redirect_uri(request)))


@router.get("/auth/hubspot/callback", name="hubspot_oauth_callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
):
    if error:
        logger.warning("oauth error from hubspot: %s", error)
        return JSONResponse(status_code=400, content={"detail": "Authorization was not granted"})

    if not code:
        return JSONResponse(status_code=400, content={"detail": "No code provided"})

    tokens = await hubspot_oauth.exchange_code(code, _redirect_uri(request))
    account = await hubspot_client.get_account_info(tokens.access_token)

    hub_id = account.get("hub_id") or account.get("hubId")
    if not hub_id:
        raise UpstreamError("token info response carried no hub_id")

    stored = await hubspot_oauth.store_install(
        hub_id,
        tokens.access_token,
        tokens.refresh_token or "",
        tokens.expires_in,
    )
    if not stored["success"]:
        # the user still authorized the app; they land on success and ops sees the log
        logger.error("failed to store install portal=%s: %s", hub_id, stored["error"])

    logger.info("oauth success portal=%s", hub_id)
    return RedirectResponse(url=_append_qs(hubspot_cfg()["success_url"], {"portalId": str(hub_id)}))
