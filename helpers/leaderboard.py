# helpers/leaderboard.py
from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel

TIMEFRAMES = ("day", "week", "month", "quarter", "year")
DEFAULT_TIMEFRAME = "week"
CLOSED_WON = "closedwon"

POINTS_PER_DEAL = 100
POINTS_PER_DOLLAR = 0.01


class LeaderboardEntry(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    deals: int = 0
    amount: float = 0.0
    points: float = 0.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _to_float(x) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0

def _parse_close_date(value) -> Optional[datetime]:
    """HubSpot sends ISO-8601 strings; older portals send epoch millis."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, (int, float)) or str(value).isdigit():
            dt = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
        else:
            dt = isoparse(str(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def _props(obj: Dict[str, Any]) -> Dict[str, Any]:
    return obj.get("properties") or {}


def start_date_for(timeframe: str, now: Optional[datetime] = None) -> datetime:
    """
    Start of the scoring window containing `now`.
    Unknown timeframes return `now` itself, which leaves the window empty.
    """
    now = now or _utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == "day":
        return midnight
    if timeframe == "week":
        # weeks start on Sunday; weekday() counts from Monday
        return midnight - timedelta(days=(now.weekday() + 1) % 7)
    if timeframe == "month":
        return midnight.replace(day=1)
    if timeframe == "quarter":
        return midnight.replace(month=(now.month - 1) // 3 * 3 + 1, day=1)
    if timeframe == "year":
        return midnight.replace(month=1, day=1)
    return now


def _owner_name(owner: Dict[str, Any]) -> str:
    return " ".join(p for p in (owner.get("firstName"), owner.get("lastName")) if p)


def build_leaderboard(
    owners: Iterable[Dict[str, Any]],
    deals: Iterable[Dict[str, Any]],
    timeframe: str = DEFAULT_TIMEFRAME,
    now: Optional[datetime] = None,
) -> List[LeaderboardEntry]:
    """
    Rank owners by points earned from closed-won deals in the timeframe.

    Every owner appears exactly once, including those with no qualifying
    deals. Owners with equal points keep their input order.
    """
    start = start_date_for(timeframe, now)

    deals_by_owner: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for deal in deals:
        p = _props(deal)
        if p.get("dealstage") != CLOSED_WON:
            continue
        closed = _parse_close_date(p.get("closedate"))
        if closed is None or closed < start:
            continue
        deals_by_owner[str(p.get("hubspot_owner_id"))].append(deal)

    board = []
    for owner in owners:
        owner_deals = deals_by_owner.get(str(owner.get("id")), [])
        total = sum(_to_float(_props(d).get("amount")) for d in owner_deals)
        board.append(LeaderboardEntry(
            id=str(owner.get("id")),
            name=_owner_name(owner),
            email=owner.get("email"),
            deals=len(owner_deals),
            amount=total,
            points=len(owner_deals) * POINTS_PER_DEAL + total * POINTS_PER_DOLLAR,
        ))

    # sorted() is stable, including with reverse=True
    return sorted(board, key=lambda e: e.points, reverse=True)
