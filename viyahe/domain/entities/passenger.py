from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class DocumentType(str, Enum):
    passport = "passport"
    national_id = "national_id"
    drivers_license = "drivers_license"


class PassengerType(str, Enum):
    adult = "adult"
    child = "child"
    infant = "infant"


@dataclass(frozen=True)
class PassengerFormData:
    """Raw form values for one passenger; empty string means not filled in."""

    title: str = ""
    first_name: str = ""
    last_name: str = ""
    middle_name: str = ""
    date_of_birth: str = ""  # YYYY-MM-DD
    gender: str = ""
    email: str = ""
    phone: str = ""
    nationality: str = ""  # ISO 3166-1 alpha-2
    document_type: str = ""
    document_number: str = ""
    document_issuing_country: str = ""
    document_expiry_date: str = ""


@dataclass(frozen=True)
class BookingPassenger:
    """Passenger entry inside a draft booking."""

    id: str
    data: PassengerFormData = PassengerFormData()
    saved_passenger_id: str | None = None
    is_modified: bool = False  # edited after being loaded from the directory


@dataclass(frozen=True)
class SavedPassenger:
    id: str
    organization_id: str
    title: str
    first_name: str
    last_name: str
    date_of_birth: str
    gender: Gender
    email: str
    phone: str
    created_by: str
    created_at: datetime
    updated_at: datetime
    middle_name: str | None = None
    nationality: str | None = None
    document_type: DocumentType | None = None
    document_number: str | None = None
    document_issuing_country: str | None = None
    document_expiry_date: str | None = None

    def display_name(self) -> str:
        return f"{self.title} {self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class IdentityDocument:
    type: DocumentType
    number: str
    issuing_country: str = ""
    expiry_date: str = ""


@dataclass(frozen=True)
class Passenger:
    """Passenger as frozen into a submitted booking request."""

    id: str
    title: str
    first_name: str
    last_name: str
    date_of_birth: str
    gender: Gender
    email: str
    phone: str
    type: PassengerType = PassengerType.adult
    middle_name: str | None = None
    nationality: str | None = None
    identity_document: IdentityDocument | None = None

    def display_name(self) -> str:
        return f"{self.title} {self.first_name} {self.last_name}".strip()
