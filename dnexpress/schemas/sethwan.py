"""
Sethwan Integration Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional


class SethwanCredentials(BaseModel):
    api_key: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)


class DefaultWarehouseRequest(BaseModel):
    warehouse_id: str = Field(..., min_length=1)


class SyncShipmentRequest(BaseModel):
    shipment_id: str = Field(..., min_length=1)


class RateRequest(BaseModel):
    from_address: str
    from_country: str = "USA"
    to_address: str
    to_country: str
    weight: float = Field(..., gt=0)
    length: float = 0
    width: float = 0
    height: float = 0
    service_type: Optional[str] = None
