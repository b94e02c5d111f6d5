from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from viyahe.application.exceptions import (
    BookingNotFoundError,
    DocumentUploadNotAllowedError,
    DuplicateBookingError,
    FulfillmentRequiresDocumentsError,
    InvalidTransitionError,
    StorageError,
    ValidationFailedError,
)
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.core.config import settings
from viyahe.domain.entities.submitted_booking import (
    BookingDocument,
    BookingStatus,
    DocumentUpload,
    SubmittedBooking,
)
from viyahe.infrastructure.store.codec import (
    deserialize_booking,
    deserialize_bookings,
    deserialize_document,
    serialize_booking,
)


class HttpBookingStore(BookingStorePort):
    """Client for the remote bookings API; the server owns the lifecycle rules."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = (base_url or settings.BOOKINGS_API_URL or "").rstrip("/")
        if not self._base_url and client is None:
            raise ValueError("BOOKINGS_API_URL is required for the HTTP booking store")
        self._client = client or httpx.Client(timeout=timeout or settings.BOOKINGS_API_TIMEOUT)
        self._logger = logging.getLogger(__name__)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error("Bookings API unreachable", extra={"error": str(e), "action": f"{method} {path}"})
            raise StorageError(f"Bookings API request failed: {e}") from e

        if response.status_code >= 500:
            self._logger.error(
                "Bookings API error",
                extra={"status": response.status_code, "action": f"{method} {path}"},
            )
            raise StorageError(f"Bookings API returned {response.status_code}")
        return response

    def _ensure_ok(self, response: httpx.Response) -> None:
        if response.status_code >= 400:
            raise StorageError(f"Bookings API rejected the request: {self._error_message(response)}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP {response.status_code}"

    @staticmethod
    def _payload(response: httpx.Response, key: str) -> Any:
        try:
            return response.json()[key]
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Malformed bookings API response: missing '{key}'") from e

    def _parse(self, parser, data: Any):
        try:
            return parser(data)
        except ValidationError as e:
            raise StorageError(f"Malformed bookings API response: {e}") from e

    def save_booking(self, booking: SubmittedBooking) -> SubmittedBooking:
        response = self._request("POST", "/bookings", json=serialize_booking(booking))
        if response.status_code == 409:
            raise DuplicateBookingError(booking.id)
        if response.status_code == 400:
            raise ValidationFailedError(self._error_message(response))
        self._ensure_ok(response)
        return self._parse(deserialize_booking, self._payload(response, "booking"))

    def get_bookings(self, status: BookingStatus | None = None) -> list[SubmittedBooking]:
        params = {"status": status.value} if status else None
        response = self._request("GET", "/bookings", params=params)
        self._ensure_ok(response)
        return self._parse(deserialize_bookings, self._payload(response, "bookings"))

    def get_booking_by_id(self, booking_id: str) -> SubmittedBooking | None:
        response = self._request("GET", f"/bookings/{booking_id}")
        if response.status_code == 404:
            return None
        self._ensure_ok(response)
        return self._parse(deserialize_booking, self._payload(response, "booking"))

    def update_status(
        self,
        booking_id: str,
        status: BookingStatus,
        agent_notes: str | None = None,
        rejection_reason: str | None = None,
        agent_id: str | None = None,
    ) -> SubmittedBooking:
        payload: dict[str, Any] = {"status": BookingStatus(status).value}
        if agent_notes:
            payload["agent_notes"] = agent_notes
        if rejection_reason:
            payload["rejection_reason"] = rejection_reason
        if agent_id:
            payload["agent_id"] = agent_id

        response = self._request("PATCH", f"/bookings/{booking_id}/status", json=payload)
        if response.status_code == 404:
            raise BookingNotFoundError(booking_id)
        if response.status_code == 400:
            message = self._error_message(response)
            if "Cannot fulfill" in message:
                raise FulfillmentRequiresDocumentsError(booking_id)
            raise InvalidTransitionError(message)
        self._ensure_ok(response)
        return self._parse(deserialize_booking, self._payload(response, "booking"))

    def add_document(self, booking_id: str, upload: DocumentUpload, uploaded_by: str | None = None) -> BookingDocument:
        payload: dict[str, Any] = {
            "type": upload.type.value,
            "file_name": upload.file_name,
            "file_size": upload.file_size,
            "mime_type": upload.mime_type,
            "data_url": upload.data_url,
        }
        if uploaded_by:
            payload["uploaded_by"] = uploaded_by

        response = self._request("POST", f"/bookings/{booking_id}/documents", json=payload)
        if response.status_code == 404:
            raise BookingNotFoundError(booking_id)
        if response.status_code == 400:
            raise DocumentUploadNotAllowedError(self._error_message(response))
        self._ensure_ok(response)
        document = self._parse(deserialize_document, self._payload(response, "document"))
        self._logger.info("Document uploaded", extra={"booking_id": booking_id, "document_id": document.id})
        return document

    def list_documents(self, booking_id: str) -> list[BookingDocument]:
        response = self._request("GET", f"/bookings/{booking_id}/documents")
        if response.status_code == 404:
            raise BookingNotFoundError(booking_id)
        self._ensure_ok(response)
        return [self._parse(deserialize_document, d) for d in self._payload(response, "documents")]

    def remove_document(self, booking_id: str, document_id: str) -> bool:
        response = self._request("DELETE", f"/documents/{document_id}")
        if response.status_code == 404:
            return False
        if response.status_code == 400:
            raise DocumentUploadNotAllowedError(self._error_message(response))
        self._ensure_ok(response)
        return True

    def clear(self) -> None:
        raise StorageError("The bookings API does not support clearing all bookings")
