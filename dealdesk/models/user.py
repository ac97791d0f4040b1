from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional
from enum import Enum

from dealdesk.config.constants import MAX_BCRYPT_BYTES, MIN_PASSWORD_LENGTH


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise ValueError(f"Password must be at most {MAX_BCRYPT_BYTES} bytes")
    return value


class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    role: Role = Role.USER

    @field_validator("password")
    @classmethod
    def password_bytes(cls, value):
        return _check_password_bytes(value)


class SigninRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=MIN_PASSWORD_LENGTH)
    role: Optional[Role] = None

    @field_validator("password")
    @classmethod
    def password_bytes(cls, value):
        if value is None:
            return value
        return _check_password_bytes(value)

    @model_validator(mode="after")
    def not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self
