"""
Ticket model for KDS kitchen tickets
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from kitchenflow.core.clock import utcnow
from typing import Optional, Dict, Any, List
from enum import Enum
import uuid


class TicketStatus(str, Enum):
    """Status of a kitchen ticket; strictly linear"""
    QUEUED = "queued"               # Waiting for the kitchen
    COOKING = "cooking"             # Kitchen is working on it
    READY = "ready"                 # Food is ready for pickup
    BUMPED = "bumped"               # Cleared from the display


class Station(str, Enum):
    """Kitchen preparation area"""
    HOT = "hot"
    COLD = "cold"
    BAR = "bar"
    DEFAULT = "default"


class KdsTicket(SQLModel, table=True):
    """Kitchen ticket for KDS display"""

    __tablename__ = "kds_tickets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    location_id: Optional[uuid.UUID] = Field(
        default=None,
        index=True,
        description="Location of the kitchen"
    )
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
        description="Order this ticket was dispatched from"
    )

    # Assigned once at dispatch
    station: Station = Field(
        default=Station.DEFAULT,
        index=True,
        description="Kitchen station this ticket is for"
    )
    status: TicketStatus = Field(
        default=TicketStatus.QUEUED,
        index=True,
        description="Current status of the ticket"
    )
    # Snapshot of the order items: [{"menuItemId", "name", "quantity", "options", ...}]
    ticket_items: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON)
    )
    priority: bool = Field(
        default=False,
        index=True,
        description="Staff flagged this ticket as urgent"
    )

    # Timing
    started_at: Optional[datetime] = Field(default=None, description="When cooking started")
    ready_at: Optional[datetime] = Field(default=None, description="When ticket became ready")
    bumped_at: Optional[datetime] = Field(default=None, description="When ticket was bumped")

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None
    version: int = Field(
        default=1,
        description="Optimistic concurrency version"
    )
