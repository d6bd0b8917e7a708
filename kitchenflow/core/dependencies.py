"""
Request dependencies for FastAPI
"""

from fastapi import Depends, HTTPException, Request, status
from sqlmodel import Session
import uuid
import structlog

from kitchenflow.core.database import get_session
from kitchenflow.core.events import EventBus
from kitchenflow.core.exceptions import ConfigError
from kitchenflow.core.store import RecordStore
from kitchenflow.core.tenant import TenantResolver

logger = structlog.get_logger(__name__)


def get_store(session: Session = Depends(get_session)) -> RecordStore:
    """Record store bound to the request session"""
    return RecordStore(session)


def get_event_bus(request: Request) -> EventBus:
    """Application event bus created in the lifespan"""
    return request.app.state.event_bus


def get_tenant_resolver(request: Request) -> TenantResolver:
    """Application tenant resolver created in the lifespan"""
    return request.app.state.tenant_resolver


def get_tenant_id(
    request: Request,
    store: RecordStore = Depends(get_store),
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> uuid.UUID:
    """Tenant of the current request

    Uses the explicit tenant header when present, otherwise resolves the
    brand key the middleware took from the host.
    """
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id is not None:
        return tenant_id

    brand_key = getattr(request.state, "brand_key", None)
    if brand_key is not None:
        tenant_id = resolver.lookup(brand_key, store)
        if tenant_id is not None:
            return tenant_id

    error = ConfigError("No tenant context for this request")
    logger.warning(f"{error.message} (brand_key={brand_key})")
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message,
    )
