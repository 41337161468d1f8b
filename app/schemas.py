"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase field names (snake_case is accepted on input).

Author: Khalil Bannouri
Version: 3.0.0
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models import OrderStatus, OrderType


EMAIL_PATTERN = re.compile(r'^[\w\.\+-]+@[\w\.-]+\.\w+$')


def _validate_email(v: str) -> str:
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError('Invalid email format')
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Jane"])
    email: str = Field(..., max_length=255, examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=128, examples=["Secret123!"])

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name must not be blank')
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


class CheckUserRequest(LoginRequest):
    pass


class ResendVerificationRequest(CamelModel):
    email: str = Field(..., max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _validate_email(v)


# =============================================================================
# PROFILE / ACCOUNT REQUEST SCHEMAS
# =============================================================================

class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _validate_email(v)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class UpdateAccountRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


# =============================================================================
# ORDER REQUEST SCHEMAS
# =============================================================================

class OrderItemRequest(CamelModel):
    """Single item in an order."""
    name: str = Field(..., min_length=1, max_length=100, examples=["Pizza Margherita"])
    price: float = Field(..., gt=0, examples=[14.99])
    quantity: int = Field(..., ge=1, le=99, examples=[2])


class CreateOrderRequest(CamelModel):
    customer_name: str = Field(..., min_length=1, max_length=100, examples=["John Doe"])
    order_type: OrderType = Field(..., examples=["delivery"])
    items: List[OrderItemRequest] = Field(..., min_length=1)


class UpdateOrderRequest(CamelModel):
    status: OrderStatus


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    email_verified: bool
    account_id: Optional[str]
    created_at: datetime


class AccountResponse(CamelModel):
    id: str
    name: str
    owner_id: str
    created_at: datetime


class RegisterResponse(CamelModel):
    success: bool = True
    message: str
    user: UserResponse
    account: AccountResponse
    warning: Optional[str] = None


class LoginResponse(CamelModel):
    success: bool = True
    token: str
    user: UserResponse
    account: AccountResponse


class SessionResponse(CamelModel):
    user: UserResponse
    account: AccountResponse


class CheckUserResponse(CamelModel):
    exists: bool
    email_verified: bool


class VerifyEmailResponse(CamelModel):
    success: bool = True
    message: str
    user: UserResponse


class MessageResponse(CamelModel):
    success: bool = True
    message: str
    warning: Optional[str] = None


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserResponse
    warning: Optional[str] = None


class OrderItemResponse(CamelModel):
    id: int
    name: str
    price: float
    quantity: int


class OrderResponse(CamelModel):
    id: int
    account_id: str
    customer_name: str
    order_type: OrderType
    status: OrderStatus
    total_amount: float
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: Optional[datetime]


class OrderListResponse(CamelModel):
    total: int
    orders: List[OrderResponse]


class ErrorResponse(CamelModel):
    """Standard error response."""
    success: bool = False
    error: str
    code: str
    detail: Optional[object] = None


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    database: str
    order_count: int
    timestamp: datetime
    version: str
    environment: str
    rate_limiter: str
    email: str


class DevTokenResponse(CamelModel):
    token: str
    expires_at: datetime
