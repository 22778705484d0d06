"""
Manifest Model - batch of shipments handed off together (customs / carrier)
"""
from datetime import datetime
from typing import List
import enum

from pydantic import Field

from .base import Entity, utcnow


class ManifestStatus(str, enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class ManifestType(str, enum.Enum):
    STANDARD = "standard"
    ASYCUDA = "asycuda"  # international customs


class Manifest(Entity):
    manifest_number: str
    company_id: str
    shipment_ids: List[str] = Field(default_factory=list)
    manifest_type: ManifestType = ManifestType.STANDARD
    destination: str = ""
    status: ManifestStatus = ManifestStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def shipment_count(self) -> int:
        return len(self.shipment_ids)

    def summary(self) -> dict:
        return {
            "id": self.id,
            "manifest_number": self.manifest_number,
            "type": self.manifest_type,
            "status": self.status,
            "shipment_count": self.shipment_count,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
