"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.domain.accounts import validate_derived_key, validate_salt
from src.domain.exceptions import SchemaViolation


class SignUpRequest(BaseModel):
    """
    Request model for account registration.

    The client never sends a password: ``derived_key`` carries the key it
    derived from ``email:password`` and ``salt`` the salt it used.
    """

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    derived_key: str = Field(..., description="Base64 PBKDF2 key derived from email:password")
    salt: str = Field(..., description="Base64 16-byte salt used for the derivation")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name is required")
        return value

    @field_validator("derived_key")
    @classmethod
    def derived_key_well_formed(cls, value: str) -> str:
        try:
            return validate_derived_key(value)
        except SchemaViolation as e:
            raise ValueError(str(e)) from None

    @field_validator("salt")
    @classmethod
    def salt_well_formed(cls, value: str) -> str:
        try:
            return validate_salt(value)
        except SchemaViolation as e:
            raise ValueError(str(e)) from None


class SignUpResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    email: str


class VerifyEmailResponse(BaseModel):
    """Response model for successful email verification."""

    message: str
    email: str


class SignInRequest(BaseModel):
    """Request model for sign-in with a re-derived key."""

    email: EmailStr
    derived_key: str = Field(..., min_length=1)


class SignInResponse(BaseModel):
    """Response model for successful sign-in."""

    message: str
    email: str


class SaltResponse(BaseModel):
    """Salt a client needs to re-derive its key."""

    salt: str


class ResendVerificationRequest(BaseModel):
    """Request model for re-sending the verification email."""

    email: EmailStr


class MessageResponse(BaseModel):
    """Generic acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
