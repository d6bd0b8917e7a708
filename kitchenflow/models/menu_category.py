"""
Menu category model; the category name drives station routing
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from kitchenflow.core.clock import utcnow
from typing import Optional
import uuid


class MenuCategory(SQLModel, table=True):
    """Menu category for organizing menu items"""

    __tablename__ = "menu_categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    tenant_id: uuid.UUID = Field(
        foreign_key="tenants.id",
        index=True,
        description="Tenant ID for multi-tenant isolation"
    )
    location_id: Optional[uuid.UUID] = Field(
        default=None,
        index=True,
        description="Location this category belongs to"
    )

    # Category details
    name: str = Field(max_length=255, nullable=False, description="Category name")
    display_order: int = Field(default=0, description="Order to display categories in UI")
    is_active: bool = Field(default=True, index=True, description="Whether category is active")

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    version: int = Field(default=1, description="Optimistic concurrency version")
