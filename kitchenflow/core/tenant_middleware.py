"""
Tenant context middleware for multi-tenant isolation
"""

from typing import Callable
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

from kitchenflow.core.config import get_settings
from kitchenflow.core.tenant import brand_key_from_headers

logger = structlog.get_logger(__name__)


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Middleware to extract tenant context from request headers

    Sets request.state.brand_key from the host headers and
    request.state.tenant_id from the explicit tenant header when one is sent.
    Brand keys are resolved to tenant ids by the get_tenant_id dependency,
    which has a database session.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        settings = get_settings()

        # Explicit tenant header wins over the host (service-to-service calls)
        tenant_id = None
        raw_tenant = request.headers.get(settings.TENANT_HEADER)
        if raw_tenant:
            try:
                tenant_id = uuid.UUID(raw_tenant)
            except ValueError:
                logger.warning(f"Ignoring malformed {settings.TENANT_HEADER} header: {raw_tenant}")

        request.state.tenant_id = tenant_id
        request.state.brand_key = brand_key_from_headers(request.headers, settings.DEFAULT_BRAND_KEY)

        logger.debug(f"Tenant context: brand_key={request.state.brand_key} tenant_id={tenant_id}")

        response = await call_next(request)
        return response
