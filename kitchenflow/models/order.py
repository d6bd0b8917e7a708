"""
Order model and its line items
Orders are created by the ordering flow in PLACED and only move through the
order lifecycle service afterwards
"""

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON
from datetime import datetime
from kitchenflow.core.clock import utcnow
from decimal import Decimal
from typing import Optional, Dict, Any, List
from enum import Enum
import uuid


class OrderStatus(str, Enum):
    """Fulfillment status of an order"""
    PLACED = "placed"               # Submitted by the guest
    ACCEPTED = "accepted"           # Accepted by staff, tickets dispatched
    IN_KITCHEN = "in_kitchen"       # Kitchen is preparing
    READY = "ready"                 # Food is ready, waiting to be served
    SERVED = "served"               # Delivered to the guest
    COMPLETED = "completed"         # Closed
    CANCELED = "canceled"           # Canceled before completion
    REFUNDED = "refunded"           # Refunded through an administrative path


class Order(SQLModel, table=True):
    """Customer order tracked through the fulfillment state machine"""

    __tablename__ = "orders"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    location_id: Optional[uuid.UUID] = Field(
        default=None,
        index=True,
        description="Location the order was placed at"
    )

    status: OrderStatus = Field(
        default=OrderStatus.PLACED,
        index=True,
        description="Current status of the order"
    )
    # Status name timestamps, e.g. {"acceptedAt": "2026-01-07T12:00:00"}; append-only
    timestamps: Dict[str, str] = Field(
        default_factory=dict,
        sa_column=Column(JSON)
    )

    total_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=12,
        decimal_places=2,
        description="Order total (snapshot)"
    )
    notes: Optional[str] = Field(default=None, max_length=2000)

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: Optional[datetime] = None

    # Optimistic concurrency control
    version: int = Field(
        default=1,
        description="Version number for optimistic concurrency control"
    )

    def is_terminal(self) -> bool:
        """Completed, canceled and refunded orders admit no further transition"""
        return self.status in (
            OrderStatus.COMPLETED,
            OrderStatus.CANCELED,
            OrderStatus.REFUNDED,
        )


class OrderItem(SQLModel, table=True):
    """Line item of an order with name, price and options snapshots"""

    __tablename__ = "order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
        description="Order this item belongs to"
    )
    menu_item_id: uuid.UUID = Field(
        index=True,
        description="Menu item this line item was ordered from"
    )

    # Snapshots taken when the order was placed
    name_snapshot: str = Field(max_length=255)
    quantity: int = Field(default=1)
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    options_snapshot: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON)
    )
    comment: Optional[str] = Field(default=None, max_length=1000)
    sort_order: int = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    version: int = Field(default=1, description="Optimistic concurrency version")
