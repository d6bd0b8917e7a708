"""
Menu item model for menu items
"""

from sqlmodel import Field, SQLModel
from decimal import Decimal
from datetime import datetime
from kitchenflow.core.clock import utcnow
from typing import Optional
import uuid


class MenuItem(SQLModel, table=True):
    """Menu item for ordering"""

    __tablename__ = "menu_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    location_id: Optional[uuid.UUID] = Field(
        default=None,
        index=True,
        description="Location this item is available at"
    )
    category_id: Optional[uuid.UUID] = Field(
        default=None,
        foreign_key="menu_categories.id",
        index=True,
        description="Category this item belongs to"
    )

    # Item details
    name: str = Field(max_length=255, description="Item name")
    description: Optional[str] = Field(default=None, max_length=2000)
    price: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    version: int = Field(default=1, description="Optimistic concurrency version")
