# helpers/install_store.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Union

from tortoise.exceptions import BaseORMException

from helpers.errors import PersistenceError
from helpers.install_cache import (
    cache_generation,
    get_cached_install,
    invalidate_install,
    set_cached_install,
)
from models.hubspot_install import HubSpotInstall

logger = logging.getLogger("installs")

PortalId = Union[int, str]

TOKEN_FIELDS = ("access_token", "refresh_token")

# driver-level connection failures surface as OSError, not ORM errors
_DB_ERRORS = (BaseORMException, OSError)


def to_portal_id(portal_id: PortalId) -> int:
    """Portal ids arrive as ints from HubSpot and as numeric strings from URLs."""
    try:
        return int(str(portal_id).strip())
    except (TypeError, ValueError):
        raise ValueError(f"portal id must be numeric, got {portal_id!r}") from None


def strip_tokens(install: HubSpotInstall) -> dict:
    """Serializable view of an install with credentials removed."""
    return {
        name: getattr(install, name)
        for name in install._meta.fields_map
        if name not in TOKEN_FIELDS
    }


async def get_install(portal_id: PortalId) -> Optional[HubSpotInstall]:
    pid = to_portal_id(portal_id)
    cached = get_cached_install(pid)
    if cached is not None:
        return cached
    generation = cache_generation(pid)
    try:
        install = await HubSpotInstall.get_or_none(portal_id=pid)
    except _DB_ERRORS as e:
        logger.error("install read failed portal=%s: %s", pid, e)
        raise PersistenceError(f"read failed for portal {pid}: {e}") from e
    if install is not None:
        set_cached_install(pid, install, generation)
    return install


async def list_installs() -> List[HubSpotInstall]:
    try:
        return await HubSpotInstall.all().order_by("-created_at")
    except _DB_ERRORS as e:
        logger.error("install list failed: %s", e)
        raise PersistenceError(f"list failed: {e}") from e


async def upsert_install(
    portal_id: PortalId,
    access_token: str,
    refresh_token: str,
    expires_at: datetime,
) -> HubSpotInstall:
    pid = to_portal_id(portal_id)
    try:
        install = await HubSpotInstall.get_or_none(portal_id=pid)
        if install:
            install.access_token = access_token
            install.refresh_token = refresh_token
            install.expires_at = expires_at
            await install.save()
            logger.info("install updated portal=%s exp=%s", pid, expires_at)
        else:
            install = await HubSpotInstall.create(
                portal_id=pid,
                access_token=access_token,
                refresh_token=refresh_token,
                expires_at=expires_at,
            )
            logger.info("install created portal=%s exp=%s", pid, expires_at)
    except _DB_ERRORS as e:
        logger.error("install write failed portal=%s: %s", pid, e)
        raise PersistenceError(f"write failed for portal {pid}: {e}") from e
    finally:
        invalidate_install(pid)
    return install


async def delete_install(portal_id: PortalId) -> Optional[HubSpotInstall]:
    pid = to_portal_id(portal_id)
    try:
        install = await HubSpotInstall.get_or_none(portal_id=pid)
        if not install:
            return None
        await install.delete()
    except _DB_ERRORS as e:
        logger.error("install delete failed portal=%s: %s", pid, e)
        raise PersistenceError(f"delete failed for portal {pid}: {e}") from e
    finally:
        invalidate_install(pid)
    logger.info("install deleted portal=%s", pid)
    return install
