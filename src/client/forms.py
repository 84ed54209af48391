"""
Client form models - Local validation before any derivation or network call.

Field errors are reported under the form's own field names
(``name``, ``email``, ``password``, ``confirmPassword``).
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

FormT = TypeVar("FormT", bound=BaseModel)

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

# Python attribute name -> form field name
_FORM_FIELD_NAMES = {"confirm_password": "confirmPassword"}


def _normalize_email(value: Any) -> Any:
    # Keys are bound to the exact email string, so sign-up and sign-in
    # must derive from the same normalized form.
    if isinstance(value, str):
        return value.strip().lower()
    return value


class SignUpForm(BaseModel):
    """Registration form fields."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("name_required", "Name is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        if not any(c.isalpha() for c in value) or not any(c.isdigit() for c in value):
            raise PydanticCustomError(
                "password_policy", "Password must contain at least one letter and one digit"
            )
        return value

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            raise PydanticCustomError("password_mismatch", "Passwords do not match")
        return value


class SignInForm(BaseModel):
    """Sign-in form fields."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _normalize_email(value)


def field_errors(error: ValidationError) -> dict[str, str]:
    """Flatten a ValidationError to one message per form field."""
    errors: dict[str, str] = {}
    for item in error.errors():
        field = str(item["loc"][0]) if item["loc"] else "form"
        field = _FORM_FIELD_NAMES.get(field, field)
        errors.setdefault(field, item["msg"])
    return errors


def validate_form(
    model: type[FormT], fields: Mapping[str, Any]
) -> tuple[FormT | None, dict[str, str]]:
    """
    Validate raw form fields against a form model.

    Returns:
        (form, {}) on success, (None, field errors) on failure
    """
    try:
        return model.model_validate(dict(fields)), {}
    except ValidationError as e:
        return None, field_errors(e)
