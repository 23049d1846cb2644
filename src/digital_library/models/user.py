"""
User model for the Digital Library lending engine.

Users are created at signup and never changed by the lending core. The
membership tier drives the loan limit and the premium gate; ``is_active``
decides whether the user may borrow or reserve at all.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    """Role of a library user."""

    READER = "reader"
    ADMIN = "admin"


class MembershipType(str, Enum):
    """Membership tier."""

    FREE = "free"
    PREMIUM = "premium"


class User(BaseModel):
    """Represents a library member."""

    id: str = Field(
        ...,
        description="Unique identifier for the user",
        min_length=1,
        examples=["user_juan", "2"],
    )

    email: EmailStr = Field(
        ...,
        description="Email address for notifications",
        examples=["usuario@email.com"],
    )

    name: str = Field(
        ...,
        description="Full name of the user",
        min_length=2,
        max_length=200,
        examples=["Juan Pérez", "María García"],
    )

    role: UserRole = Field(
        default=UserRole.READER,
        description="Reader or administrator",
    )

    membership: MembershipType = Field(
        default=MembershipType.FREE,
        description="Membership tier",
    )

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the user signed up",
    )

    is_active: bool = Field(
        default=True,
        description="Inactive users cannot borrow or reserve",
    )

    def can_borrow(self) -> bool:
        return self.is_active

    def is_premium(self) -> bool:
        return self.membership == MembershipType.PREMIUM

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "id": "2",
                "email": "usuario@email.com",
                "name": "Juan Pérez",
                "role": "reader",
                "membership": "free",
                "is_active": True,
            }
        },
    )
