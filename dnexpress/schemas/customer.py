"""
Customer Schemas - profile updates and the store-level user patch
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional

from dnexpress.models import UserProfile, UserSettings, SethwanLink, reject_null


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    business_type: Optional[str] = None
    photo_url: Optional[str] = None

    not_null = field_validator(
        "address", "city", "state", "zip_code", "country", "business_type", mode="before"
    )(reject_null)


class SettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    currency: Optional[str] = None
    language: Optional[str] = None
    timezone: Optional[str] = None
    notifications: Optional[bool] = None

    not_null = field_validator("*", mode="before")(reject_null)


class CustomerUpdate(BaseModel):
    """Fields a customer may change on their own account"""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    company_name: Optional[str] = Field(None, min_length=1)
    profile: Optional[ProfileUpdate] = None
    settings: Optional[SettingsUpdate] = None

    not_null = field_validator("*", mode="before")(reject_null)


class UserStatusUpdate(BaseModel):
    status: Literal["active", "inactive"]


class UserPatch(BaseModel):
    """Explicit set of user fields the store will merge"""
    model_config = ConfigDict(extra="forbid")

    company_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Literal["customer", "admin"]] = None
    status: Optional[Literal["active", "inactive"]] = None
    profile: Optional[UserProfile] = None
    settings: Optional[UserSettings] = None
    sethwan: Optional[SethwanLink] = None
