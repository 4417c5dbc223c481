"""Read-through TTL cache for HubSpot installs, keyed by portal id.

The database stays the source of truth: every write or delete in
`helpers.install_store` invalidates the key, and entries age out after
INSTALL_CACHE_TTL seconds (0 disables caching).

Each key carries a generation that invalidation bumps. A reader records the
generation before its database read and passes it back when caching, so a
row read before a concurrent write or delete is never cached.
"""
import os
import time

_install_cache = {}
_generations = {}


def _ttl():
    try:
        return float(os.getenv("INSTALL_CACHE_TTL", "300"))
    except ValueError:
        return 300.0


def cache_generation(portal_id):
    return _generations.get(int(portal_id), 0)


def get_cached_install(portal_id):
    """Get cached install if available and not expired"""
    entry = _install_cache.get(int(portal_id))
    if entry is None:
        return None
    install, timestamp = entry
    if time.time() - timestamp < _ttl():
        return install
    _install_cache.pop(int(portal_id), None)
    return None


def set_cached_install(portal_id, install, generation=None):
    if _ttl() <= 0:
        return
    pid = int(portal_id)
    if generation is not None and generation != cache_generation(pid):
        # written or deleted since the caller read it
        return
    _install_cache[pid] = (install, time.time())


def invalidate_install(portal_id):
    pid = int(portal_id)
    _install_cache.pop(pid, None)
    _generations[pid] = _generations.get(pid, 0) + 1


def clear_install_cache():
    _install_cache.clear()
    _generations.clear()
