# helpers/hubspot_config.py
from __future__ import annotations

import os
from typing import Any, Dict

import httpx

SCOPES = [
    "crm.objects.contacts.read",
    "crm.objects.deals.read",
    "crm.objects.owners.read",
]

def _as_float(v: str, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default

def hubspot_cfg() -> Dict[str, Any]:
    return {
        "auth_url": os.getenv("HUBSPOT_AUTH_URL", "https://app.hubspot.com/oauth/authorize"),
        "token_url": os.getenv("HUBSPOT_TOKEN_URL", "https://api.hubapi.com/oauth/v1/token"),
        "api_base": os.getenv("HUBSPOT_API_BASE", "https://api.hubapi.com").rstrip("/"),
        "client_id": os.getenv("HUBSPOT_CLIENT_ID", ""),
        "client_secret": os.getenv("HUBSPOT_CLIENT_SECRET", ""),
        # empty -> derived from the callback request's own URL
        "redirect_uri": os.getenv("HUBSPOT_REDIRECT_URI", ""),
        "success_url": os.getenv("HUBSPOT_SUCCESS_URL", "/auth/success"),
        "scope": " ".join(SCOPES),
        "timeout": _as_float(os.getenv("HUBSPOT_HTTP_TIMEOUT", "30"), 30.0),
    }

def http_client() -> httpx.AsyncClient:
    """Fresh client per call; every HubSpot request is single-shot."""
    return httpx.AsyncClient(timeout=hubspot_cfg()["timeout"])
