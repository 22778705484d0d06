"""
Inventory Schemas
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional

from dnexpress.models import reject_null

InventoryStatusName = Literal["active", "inactive", "discontinued"]


class InventoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    sku: Optional[str] = None
    quantity: int = Field(..., ge=0)
    location: str = ""


class InventoryPatch(BaseModel):
    """Used both as the PUT body and as the store-level patch"""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    status: Optional[InventoryStatusName] = None

    not_null = field_validator("*", mode="before")(reject_null)
