"""
Orders API endpoints for the order status lifecycle
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlmodel import SQLModel
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal
import structlog
import uuid

from kitchenflow.api.errors import to_http_exception
from kitchenflow.core.dependencies import get_event_bus, get_store, get_tenant_id
from kitchenflow.core.events import EventBus
from kitchenflow.core.exceptions import KitchenFlowError
from kitchenflow.core.store import RecordStore
from kitchenflow.models.order import OrderStatus
from kitchenflow.services.order_lifecycle import OrderLifecycle

logger = structlog.get_logger(__name__)
router = APIRouter()


# Pydantic schemas for request/response
class OrderResponse(SQLModel):
    """Schema for order response"""
    id: uuid.UUID
    tenant_id: uuid.UUID
    location_id: Optional[uuid.UUID] = None
    status: OrderStatus
    timestamps: Dict[str, str] = {}
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int


class OrderStatusUpdateRequest(SQLModel):
    """Schema for changing an order status"""
    status: str  # Validated against the transition table, not the enum
    version: Optional[int] = None  # Optimistic concurrency check when sent


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store)
):
    """Get an order with its status timestamps"""
    try:
        return store.get("orders", order_id, tenant_id=tenant_id)
    except KitchenFlowError as e:
        raise to_http_exception(e)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_data: OrderStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store),
    bus: EventBus = Depends(get_event_bus)
):
    """Move an order along the status lifecycle

    Rules:
    - Only transitions declared in the transition table are accepted (409 otherwise)
    - Requesting the current status is a no-op
    - When version is sent, the write only lands if the order is still at that version
    - Ticket dispatch and other side effects run after the response
    """
    try:
        lifecycle = OrderLifecycle(store, bus=bus)
        order = lifecycle.request_transition(
            order_id,
            status_data.status,
            expected_version=status_data.version,
            tenant_id=tenant_id,
        )

        background_tasks.add_task(bus.drain)
        return order

    except KitchenFlowError as e:
        logger.info(f"Rejected status change for order {order_id}: {e.message}")
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error updating order status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update order status"
        )
