from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from viyahe.domain.entities.passenger import BookingPassenger, PassengerFormData
from viyahe.domain.entities.submitted_booking import BookingDocument, SubmittedBooking

GENERIC_FAILURE = "Something went wrong. Please try again."

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class FlowResult:
    """Outcome of a user action at one stage of the booking flow."""

    action: str  # "go_to_selection", "go_to_booking", "offer_save_passengers", "go_to_confirmation", "stay", "error"
    draft_id: str | None = None
    message: str | None = None
    field_errors: dict[str, dict[str, str]] = field(default_factory=dict)
    booking: SubmittedBooking | None = None
    passengers_to_save: tuple[PassengerFormData, ...] = ()
    passenger: BookingPassenger | None = None

    @property
    def ok(self) -> bool:
        return self.action != "error"


@dataclass(frozen=True)
class OperationResult:
    """Outcome of an agent-side operation."""

    ok: bool
    error: str | None = None
    booking: SubmittedBooking | None = None
    document: BookingDocument | None = None
    bookings: tuple[SubmittedBooking, ...] = ()


def recover_unexpected(message: str = GENERIC_FAILURE) -> Callable[[F], F]:
    """
    Last-resort guard for use-case methods.

    Known failures are handled inside the method. Anything else is logged with
    its traceback on the instance's logger and returned as an error result of
    the kind the method normally returns: OperationResult for methods whose
    return annotation names it, FlowResult otherwise. A string first argument
    is taken as the draft id.
    """

    def decorator(method: F) -> F:
        returns_operation = "OperationResult" in str(method.__annotations__.get("return", ""))

        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            try:
                return method(self, *args, **kwargs)
            except Exception:
                self._logger.exception("Unexpected failure", extra={"operation": method.__name__})
                if returns_operation:
                    return OperationResult(ok=False, error=message)
                draft_id = kwargs.get("draft_id", args[0] if args and isinstance(args[0], str) else None)
                return FlowResult(action="error", draft_id=draft_id, message=message)

        return wrapper  # type: ignore[return-value]

    return decorator
