"""
Shipment Schemas
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

from dnexpress.models import ensure_utc, reject_null

ServiceName = Literal["standard", "express", "overnight"]


class AddressIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    contact_name: str = ""
    contact_phone: str = ""


class DimensionsIn(BaseModel):
    length: float = Field(0, ge=0)
    width: float = Field(0, ge=0)
    height: float = Field(0, ge=0)


class PackageIn(BaseModel):
    weight: float = Field(..., gt=0)
    dimensions: Optional[DimensionsIn] = None
    description: str = ""
    contents: List[str] = []


class ShipmentCreate(BaseModel):
    origin: AddressIn
    destination: AddressIn
    package: PackageIn
    service: ServiceName = "standard"
    rate: float = Field(0, ge=0)
    notes: str = ""
    estimated_delivery: Optional[datetime] = None

    estimated_delivery_utc = field_validator("estimated_delivery")(ensure_utc)


class ShipmentUpdate(BaseModel):
    """Changes a customer may make while the shipment is still pending"""
    model_config = ConfigDict(extra="forbid")

    notes: Optional[str] = None
    service: Optional[ServiceName] = None
    estimated_delivery: Optional[datetime] = None

    estimated_delivery_utc = field_validator("estimated_delivery")(ensure_utc)
    not_null = field_validator("*", mode="before")(reject_null)


class ShipmentPatch(BaseModel):
    """Explicit set of shipment fields the store will merge"""
    model_config = ConfigDict(extra="forbid")

    notes: Optional[str] = None
    service: Optional[ServiceName] = None
    rate: Optional[float] = Field(None, ge=0)
    estimated_delivery: Optional[datetime] = None
    sethwan_id: Optional[str] = None

    estimated_delivery_utc = field_validator("estimated_delivery")(ensure_utc)


class StatusChange(BaseModel):
    status: str = Field(..., min_length=1)
    location: Optional[str] = None
    notes: Optional[str] = None
