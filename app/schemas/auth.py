"""
app/schemas/auth.py

Purpose: Identity request/response schemas

- Registration, password login, OTP request and verification
- Normalizes emails and mobiles so uniqueness checks compare like with like
- Session token response
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from utils.validation_utils import (
    normalize_email,
    normalize_mobile,
    validate_email,
    validate_phone_number,
)


def _clean_mobile(value: Optional[str], required: bool = False) -> Optional[str]:
    value = normalize_mobile(value)
    if value is None and not required:
        return None
    if not validate_phone_number(value):
        raise ValueError("Invalid mobile number")
    return value


class RegisterRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=120)
    email: Optional[str] = Field(None, max_length=254)
    mobile: Optional[str] = Field(None, max_length=20)
    password: str = Field(..., description="Plaintext password, hashed before storage")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        v = normalize_email(v)
        if v is not None and not validate_email(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, v):
        return _clean_mobile(v)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Asha",
                "mobile": "9999999999",
                "password": "pw123456"
            }
        }


class LoginRequest(BaseModel):
    id: str = Field(..., description="Email or mobile")
    password: str

    @field_validator("id")
    @classmethod
    def normalize_identifier(cls, v):
        if "@" in v:
            return normalize_email(v) or v
        return normalize_mobile(v) or v


class SendOtpRequest(BaseModel):
    mobile: str = Field(..., min_length=1, max_length=20)

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, v):
        return _clean_mobile(v, required=True)


class VerifyOtpRequest(BaseModel):
    mobile: str = Field(..., min_length=1, max_length=20)
    otp: str

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, v):
        return _clean_mobile(v, required=True)


class SessionResponse(BaseModel):
    token: str
    isNewUser: bool
