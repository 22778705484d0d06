"""
Inventory Model - stock a company keeps at the warehouse
"""
from datetime import datetime
import enum

from pydantic import Field

from .base import Entity, utcnow


class InventoryStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DISCONTINUED = "discontinued"


class InventoryItem(Entity):
    company_id: str
    name: str
    description: str = ""
    sku: str
    quantity: int = 0
    location: str = ""
    status: InventoryStatus = InventoryStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
