"""
Manifest Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

ManifestStatusName = Literal["pending", "submitted", "approved", "rejected"]


class ManifestCreate(BaseModel):
    shipment_ids: List[str] = Field(..., min_length=1)
    manifest_type: Literal["standard", "asycuda"] = "standard"
    destination: str = ""


class ManifestStatusUpdate(BaseModel):
    status: ManifestStatusName


class ManifestPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: Optional[ManifestStatusName] = None
    destination: Optional[str] = None
