from __future__ import annotations

import re
from dataclasses import asdict

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from viyahe.application.dto.errors import field_errors_from
from viyahe.domain.entities.passenger import DocumentType, Gender, PassengerFormData

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_NAME_LENGTH = 50


def _required(value: str, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise PydanticCustomError("required", message)
    return value


def _max_length(value: str, label: str) -> str:
    if len(value) > MAX_NAME_LENGTH:
        raise PydanticCustomError("too_long", f"{label} must be at most {MAX_NAME_LENGTH} characters")
    return value


class PassengerForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    title: str = ""
    first_name: str = ""
    last_name: str = ""
    middle_name: str = ""
    date_of_birth: str = ""
    gender: str = ""
    email: str = ""
    phone: str = ""
    nationality: str = ""
    document_type: str = ""
    document_number: str = ""
    document_issuing_country: str = ""
    document_expiry_date: str = ""

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        return _required(value, "Title is required")

    @field_validator("first_name")
    @classmethod
    def _first_name(cls, value: str) -> str:
        return _max_length(_required(value, "First name is required"), "First name")

    @field_validator("last_name")
    @classmethod
    def _last_name(cls, value: str) -> str:
        return _max_length(_required(value, "Last name is required"), "Last name")

    @field_validator("middle_name")
    @classmethod
    def _middle_name(cls, value: str) -> str:
        return _max_length((value or "").strip(), "Middle name")

    @field_validator("date_of_birth")
    @classmethod
    def _date_of_birth(cls, value: str) -> str:
        value = _required(value, "Date of birth is required")
        if not DATE_RE.match(value):
            raise PydanticCustomError("date_format", "Please select month, day, and year")
        return value

    @field_validator("gender")
    @classmethod
    def _gender(cls, value: str) -> str:
        if value not in {g.value for g in Gender}:
            raise PydanticCustomError("gender", "Please select a gender")
        return value

    @field_validator("email")
    @classmethod
    def _email(cls, value: str) -> str:
        value = (value or "").strip()
        if not EMAIL_RE.match(value):
            raise PydanticCustomError("email", "Invalid email address")
        return value

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str) -> str:
        value = (value or "").strip()
        if len(value) < 10:
            raise PydanticCustomError("phone", "Phone number must be at least 10 digits")
        return value

    @field_validator("nationality")
    @classmethod
    def _nationality(cls, value: str) -> str:
        value = (value or "").strip().upper()
        if value and len(value) != 2:
            raise PydanticCustomError("country_code", "Invalid country code")
        return value

    @field_validator("document_type")
    @classmethod
    def _document_type(cls, value: str) -> str:
        if value and value not in {d.value for d in DocumentType}:
            raise PydanticCustomError("document_type", "Invalid document type")
        return value

    @field_validator("document_number")
    @classmethod
    def _document_number(cls, value: str, info: ValidationInfo) -> str:
        if info.data.get("document_type") and not (value or "").strip():
            raise PydanticCustomError(
                "document_number",
                "Document number is required when document type is specified",
            )
        return value


def validate_passenger_form(data: PassengerFormData) -> dict[str, str]:
    """Returns per-field error messages; empty when the passenger is valid."""
    try:
        PassengerForm.model_validate(asdict(data))
    except ValidationError as e:
        return field_errors_from(e)
    return {}
