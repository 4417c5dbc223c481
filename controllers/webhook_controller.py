# controllers/webhook_controller.py
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Union

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict

from helpers.errors import AuthExchangeError, NotFoundError, UnauthorizedError
from helpers.hubspot_oauth import get_valid_access_token

router = APIRouter()
log = logging.getLogger("webhooks")


class HubSpotEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    eventType: Optional[str] = None
    subscriptionType: Optional[str] = None  # v3 deliveries name the type here
    portalId: int
    objectId: Optional[int] = None

    @property
    def event_type(self) -> str:
        return self.eventType or self.subscriptionType or ""


async def on_deal_property_change(event: HubSpotEvent, token: str) -> None:
    log.info("deal %s changed on portal %s", event.objectId, event.portalId)


async def on_contact_creation(event: HubSpotEvent, token: str) -> None:
    log.info("contact %s created on portal %s", event.objectId, event.portalId)


HANDLERS: Dict[str, Callable[[HubSpotEvent, str], Awaitable[None]]] = {
    "deal.propertyChange": on_deal_property_change,
    "contact.creation": on_contact_creation,
}


async def _resolve_token(portal_id: int) -> str:
    try:
        return await get_valid_access_token(portal_id)
    except (NotFoundError, AuthExchangeError) as e:
        log.error("no valid token for portal %s: %s", portal_id, e)
        raise UnauthorizedError(str(e)) from e


async def dispatch(event: HubSpotEvent, token: str) -> bool:
    """Run the handler for the event type; unknown types are ignored."""
    handler = HANDLERS.get(event.event_type)
    if handler is None:
        log.warning("ignoring webhook type %r", event.event_type)
        return False
    await handler(event, token)
    return True


@router.post("/webhooks/hubspot")
async def hubspot_webhook(payload: Union[HubSpotEvent, List[HubSpotEvent]]):
    events = payload if isinstance(payload, list) else [payload]
    for event in events:
        log.info("received webhook %s for portal %s", event.event_type, event.portalId)
        token = await _resolve_token(event.portalId)
        await dispatch(event, token)
    return {"success": True}
