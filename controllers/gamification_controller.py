from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from helpers import hubspot_client
from helpers.leaderboard import DEFAULT_TIMEFRAME, build_leaderboard

router = APIRouter()
logger = logging.getLogger("leaderboard")

DEALS_PAGE_SIZE = 100


@router.get("/gamification/leaderboard")
async def get_leaderboard(
    accessToken: Optional[str] = Query(None, description="HubSpot access token to read with"),
    portalId: Optional[int] = Query(None, description="Portal whose stored install to read with"),
    timeframe: str = Query(DEFAULT_TIMEFRAME, description="day | week | month | quarter | year"),
):
    """
    Sales leaderboard from closed-won deals in the timeframe.
    Only the first page of deals is scored.
    """
    if accessToken:
        owners = await hubspot_client.fetch_owners(accessToken)
        deals = await hubspot_client.fetch_deals(accessToken, DEALS_PAGE_SIZE)
    elif portalId is not None:
        owners = await hubspot_client.get_owners(portalId)
        deals = await hubspot_client.get_deals(portalId, DEALS_PAGE_SIZE)
    else:
        return JSONResponse(status_code=400, content={"detail": "No access token provided"})

    board = build_leaderboard(owners.get("results", []), deals.get("results", []), timeframe)
    logger.info("leaderboard timeframe=%s owners=%d", timeframe, len(board))
    return {"leaderboard": [e.model_dump() for e in board]}
