"""Pydantic schemas for dealerships, users and registration."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, model_validator

Name = Annotated[str, Field(min_length=1, max_length=120)]


class SubscriptionPlan(str, Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    TECHNICIAN = "technician"
    SALES = "sales"


class DealershipFeatures(BaseModel):
    analytics: bool = False
    multi_location: bool = False
    custom_reports: bool = False
    api_access: bool = False


class DealershipSettings(BaseModel):
    allow_user_registration: bool = True
    require_approval: bool = False
    max_users: int = Field(default=10, ge=1)
    features: DealershipFeatures = Field(default_factory=DealershipFeatures)


class Dealership(BaseModel):
    id: str
    name: str
    address: str
    city: str
    state: str
    zip_code: str
    phone: str
    email: str
    website: str | None = None
    is_active: bool = True
    subscription_plan: SubscriptionPlan = SubscriptionPlan.BASIC
    settings: DealershipSettings = Field(default_factory=DealershipSettings)
    created_at: datetime
    updated_at: datetime | None = None


class User(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    initials: str
    role: UserRole
    dealership_id: str
    is_active: bool = True
    created_at: datetime
    last_login: datetime | None = None


class PasswordConfirmation(BaseModel):
    password: Annotated[str, Field(min_length=1)]
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords_match(self) -> "PasswordConfirmation":
        if self.password != self.confirm_password:
            msg = "Passwords do not match"
            raise ValueError(msg)
        return self


class RegisterDealership(PasswordConfirmation):
    dealership_name: Name
    address: Name
    city: Name
    state: Annotated[str, Field(min_length=1, max_length=40)]
    zip_code: Annotated[str, Field(min_length=1, max_length=20)]
    phone: Annotated[str, Field(min_length=1, max_length=32)]
    dealership_email: EmailStr
    website: str | None = None
    first_name: Name
    last_name: Name
    email: EmailStr


class RegisterUser(PasswordConfirmation):
    first_name: Name
    last_name: Name
    email: EmailStr
    role: UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str | None = None


class SessionRead(BaseModel):
    user: User
    dealership: Dealership


class DashboardOverview(BaseModel):
    total_dealerships: int
    active_dealerships: int
    total_users: int
    active_users: int
    monthly_revenue: int
