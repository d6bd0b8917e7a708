"""
KDS API endpoints for kitchen ticket display and management
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query
from sqlmodel import SQLModel
from typing import Any, Dict, List, Optional
from datetime import datetime
import structlog
import uuid

from kitchenflow.api.errors import to_http_exception
from kitchenflow.core.config import get_settings
from kitchenflow.core.dependencies import get_event_bus, get_store, get_tenant_id
from kitchenflow.core.events import EventBus
from kitchenflow.core.exceptions import KitchenFlowError
from kitchenflow.core.store import RecordStore
from kitchenflow.models.ticket import Station, TicketStatus
from kitchenflow.services.ticket_lifecycle import TicketLifecycle

logger = structlog.get_logger(__name__)
router = APIRouter()


# Pydantic schemas for request/response
class TicketResponse(SQLModel):
    """Schema for ticket response"""
    id: uuid.UUID
    tenant_id: uuid.UUID
    location_id: Optional[uuid.UUID] = None
    order_id: uuid.UUID
    station: Station
    status: TicketStatus
    ticket_items: List[Dict[str, Any]] = []
    priority: bool = False
    started_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    bumped_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    version: int


class TicketStatusUpdateRequest(SQLModel):
    """Schema for advancing a ticket"""
    status: str  # Must be the immediate successor of the current status
    version: Optional[int] = None  # Optimistic concurrency check when sent


class TicketPriorityRequest(SQLModel):
    """Schema for flagging a ticket as urgent"""
    priority: bool
    version: Optional[int] = None


@router.get("/tickets", response_model=List[TicketResponse])
async def list_tickets(
    station: Optional[Station] = Query(None, description="Filter by station"),
    ticket_status: Optional[TicketStatus] = Query(None, alias="status", description="Filter by status"),
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store)
):
    """List tickets for the kitchen display

    Rules:
    - Bumped tickets and tickets of completed orders are hidden
    - Only tickets created within the KDS window are shown
    - Urgent tickets first, then oldest first
    """
    try:
        lifecycle = TicketLifecycle(store)
        return lifecycle.list_board(
            tenant_id,
            station=station,
            status=ticket_status,
            window_hours=get_settings().KDS_TICKET_WINDOW_HOURS,
        )
    except KitchenFlowError as e:
        raise to_http_exception(e)


@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: uuid.UUID,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store)
):
    """Get a single ticket"""
    try:
        return store.get("kdsTicket", ticket_id, tenant_id=tenant_id)
    except KitchenFlowError as e:
        raise to_http_exception(e)


@router.patch("/tickets/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(
    ticket_id: uuid.UUID,
    status_data: TicketStatusUpdateRequest,
    background_tasks: BackgroundTasks,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store),
    bus: EventBus = Depends(get_event_bus)
):
    """Advance a ticket: queued -> cooking -> ready -> bumped

    A ticket reaching ready moves its order to ready after the response.
    """
    try:
        lifecycle = TicketLifecycle(store, bus=bus)
        ticket = lifecycle.advance_ticket(
            ticket_id,
            status_data.status,
            expected_version=status_data.version,
            tenant_id=tenant_id,
        )

        background_tasks.add_task(bus.drain)
        return ticket

    except KitchenFlowError as e:
        logger.info(f"Rejected status change for ticket {ticket_id}: {e.message}")
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error updating ticket status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update ticket status"
        )


@router.patch("/tickets/{ticket_id}/priority", response_model=TicketResponse)
async def update_ticket_priority(
    ticket_id: uuid.UUID,
    priority_data: TicketPriorityRequest,
    tenant_id: uuid.UUID = Depends(get_tenant_id),
    store: RecordStore = Depends(get_store)
):
    """Flag or unflag a ticket as urgent"""
    try:
        lifecycle = TicketLifecycle(store)
        return lifecycle.set_priority(
            ticket_id,
            priority_data.priority,
            expected_version=priority_data.version,
            tenant_id=tenant_id,
        )

    except KitchenFlowError as e:
        raise to_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error updating ticket priority: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update ticket priority"
        )
