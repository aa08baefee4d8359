# backend/guarddb/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

T = TypeVar("T")

MAX_EMAIL_LENGTH = 100


# ---------------------------------------------------------------------------
# RESPONSE ENVELOPE
# ---------------------------------------------------------------------------


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope returned by application services.

    Expected business failures (duplicates, missing tenant context) come
    back with success=False and a readable message instead of raising.
    """

    success: bool
    message: str
    data: Optional[T] = None

    @classmethod
    def ok(cls, data: T, message: str) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=None)


# ---------------------------------------------------------------------------
# AGENCY REGISTRATION
# ---------------------------------------------------------------------------


class RegisterAgencyRequest(BaseModel):
    # Agency / tenant
    company_name: str = Field(..., min_length=1, max_length=200)
    registration_number: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    pin_code: Optional[str] = None

    # Admin user
    admin_user_name: str = Field(..., min_length=3, max_length=50)
    admin_email: EmailStr
    admin_password: str = Field(..., min_length=6, max_length=100)
    admin_first_name: str = Field(..., min_length=1, max_length=100)
    admin_last_name: Optional[str] = Field(default=None, max_length=100)
    admin_phone_number: Optional[str] = None

    @field_validator(
        "company_name",
        "registration_number",
        "phone",
        "admin_user_name",
        "admin_first_name",
        mode="before",
    )
    @classmethod
    def _strip_required(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", "admin_email")
    @classmethod
    def _email_length(cls, value: str) -> str:
        if len(value) > MAX_EMAIL_LENGTH:
            raise ValueError(f"Email must not exceed {MAX_EMAIL_LENGTH} characters")
        return value.lower()


class RegisterAgencyResult(BaseModel):
    tenant_id: str
    company_name: str
    admin_user_id: str
    admin_user_name: str
    message: str


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    login: str = Field(..., min_length=1, description="User name or email")
    password: str = Field(..., min_length=1)


class UserRead(BaseModel):
    id: str
    tenant_id: str
    department_id: Optional[str] = None
    user_name: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    is_active: bool
    is_email_verified: bool
    last_login_at: Optional[datetime] = None
    role_codes: List[str] = []

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


# ---------------------------------------------------------------------------
# MENUS
# ---------------------------------------------------------------------------


class SubMenuRead(BaseModel):
    id: str
    name: str
    display_name: str
    icon: Optional[str] = None
    route: Optional[str] = None
    display_order: int

    class Config:
        from_attributes = True


class MenuRead(BaseModel):
    id: str
    name: str
    display_name: str
    icon: Optional[str] = None
    route: Optional[str] = None
    display_order: int
    sub_menus: List[SubMenuRead] = []

    class Config:
        from_attributes = True
