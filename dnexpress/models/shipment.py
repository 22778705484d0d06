"""
Shipment Models - package movements and their status trail
"""
from datetime import datetime
from typing import List, Optional
import enum

from pydantic import BaseModel, Field

from .base import Entity, utcnow


class ShipmentStatus(str, enum.Enum):
    PENDING = "pending"
    PICKUP = "pickup"
    IN_TRANSIT = "in-transit"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


SHIPMENT_STATUSES = [s.value for s in ShipmentStatus]
TERMINAL_STATUSES = {ShipmentStatus.DELIVERED.value, ShipmentStatus.CANCELLED.value}


class ServiceLevel(str, enum.Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


class PostalAddress(BaseModel):
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    contact_name: str = ""
    contact_phone: str = ""


class Dimensions(BaseModel):
    length: float = 0
    width: float = 0
    height: float = 0


class PackageInfo(BaseModel):
    weight: float  # lbs
    dimensions: Dimensions = Field(default_factory=Dimensions)
    description: str = ""
    contents: List[str] = Field(default_factory=list)


class StatusEntry(BaseModel):
    status: str
    timestamp: datetime = Field(default_factory=utcnow)
    location: str = ""
    notes: str = ""


class Shipment(Entity):
    tracking_number: str
    customer_id: str
    company_id: str
    origin: PostalAddress
    destination: PostalAddress
    package: PackageInfo
    service: ServiceLevel = ServiceLevel.STANDARD
    rate: float = 0.0
    status: ShipmentStatus = ShipmentStatus.PENDING
    status_history: List[StatusEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    notes: str = ""
    sethwan_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def tracking_view(self) -> dict:
        """Public tracking payload - no customer or contact data"""
        return {
            "tracking_number": self.tracking_number,
            "status": self.status,
            "origin": {
                "city": self.origin.city,
                "state": self.origin.state,
                "country": self.origin.country,
            },
            "destination": {
                "city": self.destination.city,
                "state": self.destination.state,
                "country": self.destination.country,
            },
            "status_history": [e.model_dump(mode="json") for e in self.status_history],
            "estimated_delivery": self.estimated_delivery.isoformat() if self.estimated_delivery else None,
            "actual_delivery": self.actual_delivery.isoformat() if self.actual_delivery else None,
            "created_at": self.created_at.isoformat(),
        }


class StatusUpdate(Entity):
    """Status change mirrored outside the shipment for cross-shipment queries"""
    shipment_id: str
    company_id: str
    status: str
    location: str = ""
    notes: str = ""
    updated_by: str = "system"
    timestamp: datetime = Field(default_factory=utcnow)
