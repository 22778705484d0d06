"""
User Model - customer companies and administrators
"""
from datetime import datetime
from typing import Any, Dict, Optional
import enum

from pydantic import BaseModel, Field

from .base import Entity, utcnow


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserProfile(BaseModel):
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    business_type: str = ""
    photo_url: Optional[str] = None
    auth_provider: str = "email"


class UserSettings(BaseModel):
    currency: str = "USD"
    language: str = "en"
    timezone: str = "UTC"
    notifications: bool = True


class WarehouseAddress(BaseModel):
    """Forwarding address a customer uses for inbound packages"""
    customer_number: str
    recipient_name: str
    company_name: str
    street1: str
    street2: str
    city: str
    state: str
    zip_code: str
    country: str
    full_address: str


class SethwanLink(BaseModel):
    customer_id: Optional[str] = None
    account_id: Optional[str] = None
    api_key: Optional[str] = None
    default_warehouse: Optional[str] = None
    integrated: bool = False


class User(Entity):
    customer_number: str
    company_name: str
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    password: Optional[str] = None  # bcrypt hash
    role: UserRole = UserRole.CUSTOMER
    status: UserStatus = UserStatus.ACTIVE
    profile: UserProfile = Field(default_factory=UserProfile)
    settings: UserSettings = Field(default_factory=UserSettings)
    warehouse_address: WarehouseAddress
    sethwan: SethwanLink = Field(default_factory=SethwanLink)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def public_dict(self) -> Dict[str, Any]:
        """User as returned by the API - never exposes the password hash or partner key"""
        data = self.model_dump(mode="json", exclude={"password"})
        data["sethwan"].pop("api_key", None)
        return data
