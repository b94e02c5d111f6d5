from __future__ import annotations

import uuid
from typing import Any

from viyahe.domain.entities.passenger import (
    BookingPassenger,
    DocumentType,
    Gender,
    IdentityDocument,
    Passenger,
    PassengerFormData,
    SavedPassenger,
)


def generate_temp_passenger_id() -> str:
    return f"temp-{uuid.uuid4().hex[:10]}"


def saved_passenger_to_form_data(passenger: SavedPassenger) -> PassengerFormData:
    return PassengerFormData(
        title=passenger.title,
        first_name=passenger.first_name,
        last_name=passenger.last_name,
        middle_name=passenger.middle_name or "",
        date_of_birth=passenger.date_of_birth,
        gender=passenger.gender.value,
        email=passenger.email,
        phone=passenger.phone,
        nationality=passenger.nationality or "",
        document_type=passenger.document_type.value if passenger.document_type else "",
        document_number=passenger.document_number or "",
        document_issuing_country=passenger.document_issuing_country or "",
        document_expiry_date=passenger.document_expiry_date or "",
    )


def form_data_to_saved_passenger(data: PassengerFormData) -> dict[str, Any]:
    """Build the create payload for the saved-passenger directory from validated form data."""
    result: dict[str, Any] = {
        "title": data.title,
        "first_name": data.first_name,
        "last_name": data.last_name,
        "date_of_birth": data.date_of_birth,
        "gender": data.gender,
        "email": data.email,
        "phone": data.phone,
    }
    if data.middle_name:
        result["middle_name"] = data.middle_name
    if data.nationality:
        result["nationality"] = data.nationality
    if data.document_type:
        result["document_type"] = data.document_type
        result["document_number"] = data.document_number
        result["document_issuing_country"] = data.document_issuing_country
        result["document_expiry_date"] = data.document_expiry_date
    return result


def form_data_to_passenger(data: PassengerFormData, passenger_id: str) -> Passenger:
    identity_document = None
    if data.document_type:
        identity_document = IdentityDocument(
            type=DocumentType(data.document_type),
            number=data.document_number,
            issuing_country=data.document_issuing_country,
            expiry_date=data.document_expiry_date,
        )
    return Passenger(
        id=passenger_id,
        title=data.title,
        first_name=data.first_name,
        last_name=data.last_name,
        middle_name=data.middle_name or None,
        date_of_birth=data.date_of_birth,
        gender=Gender(data.gender),
        email=data.email,
        phone=data.phone,
        nationality=data.nationality or None,
        identity_document=identity_document,
    )


def passengers_to_save(passengers: tuple[BookingPassenger, ...] | list[BookingPassenger]) -> list[PassengerFormData]:
    """New passengers, and directory passengers edited during this booking."""
    return [p.data for p in passengers if not p.saved_passenger_id or p.is_modified]


def unchanged_saved_passenger_ids(passengers: tuple[BookingPassenger, ...] | list[BookingPassenger]) -> list[str]:
    return [p.saved_passenger_id for p in passengers if p.saved_passenger_id and not p.is_modified]
