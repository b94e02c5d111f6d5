from __future__ import annotations

import base64
import logging

from viyahe.application.dto.flow_result import OperationResult, recover_unexpected
from viyahe.application.exceptions import BookingError, InvalidTransitionError, NotFoundError
from viyahe.application.ports.booking_store import BookingStorePort
from viyahe.core.config import settings
from viyahe.domain.entities.submitted_booking import (
    BookingDocumentType,
    BookingStatus,
    DocumentUpload,
)


def upload_from_bytes(
    doc_type: BookingDocumentType,
    file_name: str,
    mime_type: str,
    content: bytes,
) -> DocumentUpload:
    """Wrap raw file content as a base64 data URL upload."""
    encoded = base64.b64encode(content).decode("ascii")
    return DocumentUpload(
        type=BookingDocumentType(doc_type),
        file_name=file_name,
        file_size=len(content),
        mime_type=mime_type,
        data_url=f"data:{mime_type};base64,{encoded}",
    )


class AgentReviewUseCase:
    """Agent-side operations on submitted bookings."""

    def __init__(self, bookings: BookingStorePort, agent_id: str | None = None) -> None:
        self._bookings = bookings
        self._agent_id = agent_id or settings.AGENT_ID
        self._logger = logging.getLogger(__name__)

    @recover_unexpected("Failed to load bookings")
    def list_bookings(self, status_filter: BookingStatus | str | None = None) -> OperationResult:
        status = None
        if status_filter and status_filter != "all":
            try:
                status = BookingStatus(status_filter)
            except ValueError:
                return OperationResult(ok=False, error=f"Unknown status filter: {status_filter}")
        try:
            bookings = self._bookings.get_bookings(status)
        except BookingError as e:
            self._logger.error("Failed to load bookings", extra={"error": str(e)})
            return OperationResult(ok=False, error="Failed to load bookings")
        return OperationResult(ok=True, bookings=tuple(bookings))

    @recover_unexpected("Failed to confirm booking")
    def confirm(self, booking_id: str, notes: str | None = None) -> OperationResult:
        return self._transition(booking_id, BookingStatus.CONFIRMED, "confirm", agent_notes=notes)

    @recover_unexpected("Failed to reject booking")
    def reject(self, booking_id: str, reason: str | None = None) -> OperationResult:
        return self._transition(booking_id, BookingStatus.REJECTED, "reject", rejection_reason=reason)

    @recover_unexpected("Failed to fulfill booking")
    def fulfill(self, booking_id: str) -> OperationResult:
        return self._transition(booking_id, BookingStatus.FULFILLED, "fulfill")

    @recover_unexpected("Failed to upload document")
    def upload_document(self, booking_id: str, upload: DocumentUpload) -> OperationResult:
        try:
            document = self._bookings.add_document(booking_id, upload, uploaded_by=self._agent_id)
        except (NotFoundError, InvalidTransitionError) as e:
            return OperationResult(ok=False, error=str(e))
        except BookingError as e:
            self._logger.error("Document upload failed", extra={"booking_id": booking_id, "error": str(e)})
            return OperationResult(ok=False, error="Failed to upload document")
        return OperationResult(ok=True, document=document, booking=self._bookings.get_booking_by_id(booking_id))

    @recover_unexpected("Failed to delete document")
    def remove_document(self, booking_id: str, document_id: str) -> OperationResult:
        try:
            removed = self._bookings.remove_document(booking_id, document_id)
        except (NotFoundError, InvalidTransitionError) as e:
            return OperationResult(ok=False, error=str(e))
        except BookingError as e:
            self._logger.error(
                "Document removal failed",
                extra={"booking_id": booking_id, "document_id": document_id, "error": str(e)},
            )
            return OperationResult(ok=False, error="Failed to delete document")
        if not removed:
            return OperationResult(ok=False, error=f"Document with ID {document_id} not found")
        return OperationResult(ok=True, booking=self._bookings.get_booking_by_id(booking_id))

    def _transition(self, booking_id: str, status: BookingStatus, verb: str, **options) -> OperationResult:
        try:
            booking = self._bookings.update_status(booking_id, status, agent_id=self._agent_id, **options)
        except (NotFoundError, InvalidTransitionError) as e:
            self._logger.warning(
                f"Cannot {verb} booking",
                extra={"booking_id": booking_id, "status": status.value, "error": str(e)},
            )
            return OperationResult(ok=False, error=str(e))
        except BookingError as e:
            self._logger.error(
                f"Failed to {verb} booking",
                extra={"booking_id": booking_id, "status": status.value, "error": str(e)},
            )
            return OperationResult(ok=False, error=f"Failed to {verb} booking")
        return OperationResult(ok=True, booking=booking)
