"""
Tenant resolution from the request host

Brand keys come from the first label of the host name, so
saffron.example.com and saffron-admin.example.com both belong to the
"saffron" tenant. Resolved brand keys are cached in a BrandKeyCache owned by
the application, not held in module state.
"""

from collections import OrderedDict
from typing import Callable, Mapping, Optional, Tuple
import time
import uuid

import structlog

logger = structlog.get_logger(__name__)

LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "::1")
ADMIN_SUFFIX = "-admin"


def _strip_port(host: str) -> str:
    if host.startswith("["):
        # Bracketed IPv6 literal, e.g. [::1]:8000
        return host[1:].split("]", 1)[0]
    if host.count(":") > 1:
        return host
    return host.split(":", 1)[0]


def resolve_brand_key(hostname: Optional[str], default_brand_key: Optional[str] = None) -> Optional[str]:
    """Derive the brand key for a host name

    Returns the default brand key for loopback hosts and None when the host
    carries no brand.
    """
    if not hostname:
        return None

    host = _strip_port(hostname.strip().lower())
    if host in LOOPBACK_HOSTS:
        return default_brand_key or None

    labels = host.split(".")
    if len(labels) >= 3:
        key = labels[0]
        if key.endswith(ADMIN_SUFFIX):
            key = key[:-len(ADMIN_SUFFIX)]
        return key or None

    return None


def brand_key_from_headers(headers: Mapping[str, str], default_brand_key: Optional[str] = None) -> Optional[str]:
    """Brand key of a request; the host header wins over x-forwarded-host"""
    host = headers.get("host") or headers.get("x-forwarded-host")
    if not host:
        return None
    return resolve_brand_key(host, default_brand_key)


class BrandKeyCache:
    """Brand key to tenant id cache with a TTL and a size bound

    Entries older than ttl_seconds are dropped when read. When the cache is
    full the oldest entry is evicted to make room.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[uuid.UUID, float]]" = OrderedDict()

    def get(self, key: str) -> Optional[uuid.UUID]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        tenant_id, stored_at = entry
        if self.clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return tenant_id

    def set(self, key: str, tenant_id: uuid.UUID):
        # Same key always maps to the same tenant, so last write wins
        self._entries.pop(key, None)
        self._entries[key] = (tenant_id, self.clock())
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted brand key {evicted} from cache")

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class TenantResolver:
    """Resolves the tenant of a request from its host headers"""

    def __init__(self, cache: BrandKeyCache, default_brand_key: Optional[str] = None):
        self.cache = cache
        self.default_brand_key = default_brand_key

    def lookup(self, brand_key: str, store) -> Optional[uuid.UUID]:
        """Tenant id for a brand key, from the cache or the tenant collection"""
        tenant_id = self.cache.get(brand_key)
        if tenant_id is not None:
            logger.debug(f"Brand key cache hit: {brand_key}")
            return tenant_id

        logger.debug(f"Brand key cache miss: {brand_key}")
        tenants = store.list("tenant", {"slug": brand_key, "is_active": True}, limit=1)
        if not tenants:
            logger.warning(f"No active tenant for brand key: {brand_key}")
            return None

        tenant_id = tenants[0].id
        self.cache.set(brand_key, tenant_id)
        return tenant_id

    def resolve(self, headers: Mapping[str, str], store) -> Tuple[Optional[str], Optional[uuid.UUID]]:
        """Return (brand_key, tenant_id) for a request; either may be None"""
        brand_key = brand_key_from_headers(headers, self.default_brand_key)
        if brand_key is None:
            return None, None
        return brand_key, self.lookup(brand_key, store)
