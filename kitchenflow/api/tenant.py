"""
Tenant API endpoint reporting the tenant a request resolves to
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import SQLModel
from typing import Optional
import structlog
import uuid

from kitchenflow.api.errors import to_http_exception
from kitchenflow.core.dependencies import get_store, get_tenant_resolver
from kitchenflow.core.exceptions import NotFound
from kitchenflow.core.store import RecordStore
from kitchenflow.core.tenant import TenantResolver

logger = structlog.get_logger(__name__)
router = APIRouter()


class CurrentTenantResponse(SQLModel):
    """Schema for the resolved tenant of a request"""
    brand_key: Optional[str] = None
    tenant_id: uuid.UUID
    name: str
    slug: str


@router.get("/current", response_model=CurrentTenantResponse)
async def get_current_tenant(
    request: Request,
    store: RecordStore = Depends(get_store),
    resolver: TenantResolver = Depends(get_tenant_resolver)
):
    """Resolve the tenant from the tenant header or the request host"""
    brand_key = getattr(request.state, "brand_key", None)
    tenant_id = getattr(request.state, "tenant_id", None)
    if tenant_id is None:
        brand_key, tenant_id = resolver.resolve(request.headers, store)

    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No tenant for this request"
        )

    try:
        tenant = store.get("tenant", tenant_id)
    except NotFound as e:
        raise to_http_exception(e)

    return CurrentTenantResponse(
        brand_key=brand_key,
        tenant_id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
    )
