#!/usr/bin/env python3
"""
Local booking walk-through (no HTTP, no UI).

Usage:
  python3 scripts/booking_local.py client [--origin JFK --destination LAX --date 2026-03-15]
  python3 scripts/booking_local.py agent list [--status BOOKING_REQUESTED]
  python3 scripts/booking_local.py agent confirm <booking_id> [--notes "..."]
  python3 scripts/booking_local.py agent reject <booking_id> [--reason "..."]
  python3 scripts/booking_local.py agent upload <booking_id> <file> [--type e_ticket]
  python3 scripts/booking_local.py agent fulfill <booking_id>
  python3 scripts/booking_local.py poll

What it does:
- "client" runs search -> selection -> passenger entry -> submission against the
  wired draft and booking stores, then prints the confirmation view
- "agent" runs the agent review operations on submitted bookings
- "poll" runs one reconciliation cycle and prints the drafts it updated
"""

from __future__ import annotations

import argparse
import mimetypes
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from viyahe.application.utils.pricing import create_price_with_markup, make_price
from viyahe.application.use_cases.agent_review import upload_from_bytes
from viyahe.core.logging import configure_logging
from viyahe.domain.entities.flight import Airline, Airport, FlightOffer, FlightSegment, FlightSlice
from viyahe.domain.entities.passenger import PassengerFormData
from viyahe.domain.entities.submitted_booking import BookingDocumentType
from viyahe.wiring.dependencies import get_container


def _demo_offer(origin: str, destination: str, departure_date: str) -> FlightOffer:
    """One fixed nonstop offer for the requested route."""
    departure = datetime.strptime(departure_date, "%Y-%m-%d").replace(hour=8, tzinfo=timezone.utc)
    arrival = departure + timedelta(hours=6)
    segment = FlightSegment(
        id="seg_demo_1",
        origin=Airport(iata_code=origin),
        destination=Airport(iata_code=destination),
        departure_time=departure,
        arrival_time=arrival,
        duration=360,
        flight_number="VY100",
        airline=Airline(iata_code="VY", name="Viyahe Air"),
    )
    flight_slice = FlightSlice(
        id="slice_demo_1",
        origin=segment.origin,
        destination=segment.destination,
        departure_time=departure,
        arrival_time=arrival,
        duration=360,
        segments=(segment,),
    )
    total, marked_up = create_price_with_markup(35000, "USD")
    return FlightOffer(
        id="offer_demo_1",
        slices=(flight_slice,),
        total_price=total,
        base_price=make_price(29000),
        taxes_and_fees=make_price(6000),
        price_with_markup=marked_up,
    )


def _print_result(label: str, result) -> None:
    print(f"{label}: {result.action}" + (f" ({result.message})" if result.message else ""))
    for passenger_id, errors in result.field_errors.items():
        for field_name, message in errors.items():
            print(f"  {passenger_id}.{field_name}: {message}")


def run_client(container: dict, args: argparse.Namespace) -> int:
    result = container["search"].submit(
        {
            "trip_type": "one_way",
            "origin": args.origin,
            "destination": args.destination,
            "departure_date": args.date,
            "passengers": 1,
            "cabin_class": "economy",
        }
    )
    _print_result("search", result)
    if not result.ok:
        return 1
    draft_id = result.draft_id

    container["selection"].open(draft_id)
    result = container["selection"].choose_flight(draft_id, _demo_offer(args.origin, args.destination, args.date))
    _print_result("select", result)
    if not result.ok:
        return 1

    filling = container["filling"]
    filling.enter(draft_id)
    result = filling.add_new(draft_id)
    if not result.ok:
        _print_result("passenger", result)
        return 1
    result = filling.update_passenger(
        draft_id,
        result.passenger.id,
        PassengerFormData(
            title="Ms",
            first_name=args.first_name,
            last_name=args.last_name,
            date_of_birth="1990-05-01",
            gender="female",
            email=args.email,
            phone="+15555550100",
        ),
    )
    if not result.ok:
        _print_result("passenger", result)
        return 1

    result = container["submit"].submit(draft_id)
    _print_result("submit", result)
    if not result.ok:
        return 1
    if result.action == "offer_save_passengers" and args.save_passengers:
        saved = container["submit"].save_new_passengers(result.passengers_to_save)
        print(f"saved passengers: {len(saved)}")

    view = container["confirmation"].view(draft_id)
    print("\n--- Confirmation ---")
    print(view.headline)
    print(view.message)
    if view.booking:
        print(f"booking_id: {view.booking.id}")
        print(f"total: {view.total_display}")
    return 0


def run_agent(container: dict, args: argparse.Namespace) -> int:
    agent = container["agent"]
    if args.command == "list":
        result = agent.list_bookings(args.status)
        for booking in result.bookings:
            route = f"{booking.request.search_params.origin} -> {booking.request.search_params.destination}"
            print(f"{booking.id}  {booking.status.value:<18} {route}  docs={len(booking.documents)}")
    elif args.command == "confirm":
        result = agent.confirm(args.booking_id, args.notes)
    elif args.command == "reject":
        result = agent.reject(args.booking_id, args.reason)
    elif args.command == "fulfill":
        result = agent.fulfill(args.booking_id)
    elif args.command == "upload":
        path = Path(args.file)
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        upload = upload_from_bytes(BookingDocumentType(args.type), path.name, mime_type, path.read_bytes())
        result = agent.upload_document(args.booking_id, upload)
    else:
        raise ValueError(f"Unknown agent command: {args.command}")

    if not result.ok:
        print(f"ERROR: {result.error}")
        return 1
    if result.booking:
        print(f"{result.booking.id}: {result.booking.status.value}")
    return 0


def run_poll(container: dict) -> int:
    updated = container["poller"].poll_once()
    print(f"drafts updated: {updated}")
    for draft in container["drafts"].bookings:
        if draft.server_booking_id:
            status = draft.server_status.value if draft.server_status else "-"
            print(f"{draft.id}  {draft.display_label()}  {draft.server_booking_id}  {status}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Local booking walk-through")
    sub = parser.add_subparsers(dest="role", required=True)

    client = sub.add_parser("client", help="Search, select, fill and submit one booking")
    client.add_argument("--origin", default="JFK")
    client.add_argument("--destination", default="LAX")
    client.add_argument("--date", default=(datetime.now() + timedelta(days=30)).strftime("%Y-%m-%d"))
    client.add_argument("--first-name", default="Maria")
    client.add_argument("--last-name", default="Santos")
    client.add_argument("--email", default="maria.santos@example.com")
    client.add_argument("--save-passengers", action="store_true")

    agent = sub.add_parser("agent", help="Agent review operations")
    agent_sub = agent.add_subparsers(dest="command", required=True)
    listing = agent_sub.add_parser("list")
    listing.add_argument("--status", default=None)
    confirm = agent_sub.add_parser("confirm")
    confirm.add_argument("booking_id")
    confirm.add_argument("--notes", default=None)
    reject = agent_sub.add_parser("reject")
    reject.add_argument("booking_id")
    reject.add_argument("--reason", default=None)
    fulfill = agent_sub.add_parser("fulfill")
    fulfill.add_argument("booking_id")
    upload = agent_sub.add_parser("upload")
    upload.add_argument("booking_id")
    upload.add_argument("file")
    upload.add_argument("--type", default=BookingDocumentType.e_ticket.value, choices=[t.value for t in BookingDocumentType])

    sub.add_parser("poll", help="Run one reconciliation cycle")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    configure_logging()
    container = get_container()
    if args.role == "client":
        return run_client(container, args)
    if args.role == "agent":
        return run_agent(container, args)
    return run_poll(container)


if __name__ == "__main__":
    raise SystemExit(main())
