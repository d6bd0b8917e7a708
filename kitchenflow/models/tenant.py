"""
Tenant model - Multi-tenancy foundation
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from kitchenflow.core.clock import utcnow
from typing import Optional
import uuid


class Tenant(SQLModel, table=True):
    """Restaurant brand account; every record is scoped to one tenant"""

    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    slug: str = Field(unique=True, index=True, description="Brand key used for hostname routing")
    email: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    is_active: bool = Field(default=True, index=True)
    version: int = Field(default=1, description="Optimistic concurrency version")
