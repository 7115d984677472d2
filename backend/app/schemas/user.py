"""
StayBook Backend — Account Schemas
====================================

What:  Request bodies for /register and /login, and the public user shape
       returned by /register, /login and /profile.

The password only ever appears in request models. UserResponse has no
password or hash field, so neither can be serialized by accident.
"""

import uuid

from pydantic import BaseModel, Field, field_validator

# Deliberately loose: one "@", no whitespace, a dot in the domain.
# Deliverability is not checked and the address is stored as submitted.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Public view of an identity: {id, name, email}."""
    id: uuid.UUID = Field(description="Identity identifier")
    name: str = Field(description="Display name")
    email: str = Field(description="Email address as registered")

    model_config = {"from_attributes": True}
