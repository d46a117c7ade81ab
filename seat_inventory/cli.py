"""Command line interface for managing flights and seat reservations."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, List, Sequence

from tabulate import tabulate

from . import queries
from .database import Store, init_db
from .dataset import generate_sample_data
from .errors import ReservationError
from .models import Booking, Flight
from .services import ReservationEngine

logger = logging.getLogger(__name__)

FLIGHT_HEADERS = ["Flight", "Airline", "From", "To", "Total", "Available"]
PASSENGER_HEADERS = ["Passenger", "Name", "Flight", "Seat"]


def _flight_rows(flights: Iterable[Flight]) -> List[list]:
    return [
        [
            flight.flight_number,
            flight.airline_name,
            flight.starting_point,
            flight.destination,
            flight.total_tickets,
            flight.available_tickets,
        ]
        for flight in flights
    ]


def _passenger_rows(bookings: Iterable[Booking]) -> List[list]:
    return [
        [booking.passenger_id, booking.name, booking.flight_number, booking.seat_number]
        for booking in bookings
    ]


def _render_table(rows: Sequence[Sequence[object]], headers: Sequence[str]) -> str:
    if not rows:
        return "(none)"
    return tabulate(rows, headers=headers, tablefmt="github")


def _seat_list(seats: Iterable[int]) -> str:
    return " ".join(str(seat) for seat in sorted(seats)) or "(none)"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seat-inventory",
        description="Manage flights, passengers and seat reservations.",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="SQLAlchemy database URL (default: $SEAT_INVENTORY_DB_URL or ./seat_inventory.db).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the database tables.")

    add_flight = commands.add_parser("add-flight", help="Create a flight.")
    add_flight.add_argument("flight_number")
    add_flight.add_argument("--airline", required=True)
    add_flight.add_argument("--from", dest="starting_point", required=True)
    add_flight.add_argument("--to", dest="destination", required=True)
    add_flight.add_argument("--tickets", type=int, required=True, help="Total seat capacity.")

    modify_flight = commands.add_parser("modify-flight", help="Edit a flight's details or capacity.")
    modify_flight.add_argument("flight_number")
    modify_flight.add_argument("--airline")
    modify_flight.add_argument("--from", dest="starting_point")
    modify_flight.add_argument("--to", dest="destination")
    modify_flight.add_argument("--tickets", type=int)

    delete_flight = commands.add_parser("delete-flight", help="Delete a flight and its bookings.")
    delete_flight.add_argument("flight_number")

    reserve = commands.add_parser("reserve", help="Book a seat for a new passenger.")
    reserve.add_argument("passenger_id")
    reserve.add_argument("flight_number")
    reserve.add_argument("seat_number", type=int)
    reserve.add_argument("--name", required=True)

    modify_booking = commands.add_parser("modify-booking", help="Change a passenger's name, flight or seat.")
    modify_booking.add_argument("passenger_id")
    modify_booking.add_argument("flight_number")
    modify_booking.add_argument("seat_number", type=int)
    modify_booking.add_argument("--name", required=True)

    cancel = commands.add_parser("cancel", help="Cancel a passenger's reservation.")
    cancel.add_argument("passenger_id")

    commands.add_parser("flights", help="List all flights.")
    passengers = commands.add_parser("passengers", help="List passengers.")
    passengers.add_argument("--flight", dest="flight_number", help="Only show passengers on this flight.")

    seats = commands.add_parser("seats", help="Show taken and free seats on a flight.")
    seats.add_argument("flight_number")

    commands.add_parser("summary", help="Show seat usage per flight.")
    commands.add_parser("audit", help="Check ticket counters against bookings.")

    seed = commands.add_parser("seed", help="Fill the database with sample data.")
    seed.add_argument("--flights", type=int, default=25)
    seed.add_argument("--passengers", type=int, default=200)
    return parser


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    return build_parser().parse_args(list(argv))


def run_command(args: argparse.Namespace, store: Store) -> int:
    engine = ReservationEngine(store)
    command = args.command

    if command == "init-db":
        print("Database initialized.")
    elif command == "add-flight":
        flight = engine.add_flight(
            args.flight_number,
            airline_name=args.airline,
            starting_point=args.starting_point,
            destination=args.destination,
            total_tickets=args.tickets,
        )
        print(f"Flight {flight.flight_number} added with {flight.total_tickets} tickets.")
    elif command == "modify-flight":
        flight = engine.modify_flight(
            args.flight_number,
            airline_name=args.airline,
            starting_point=args.starting_point,
            destination=args.destination,
            total_tickets=args.tickets,
        )
        print(_render_table(_flight_rows([flight]), FLIGHT_HEADERS))
    elif command == "delete-flight":
        removed = engine.delete_flight(args.flight_number)
        print(f"Flight {args.flight_number} deleted along with {removed} booking(s).")
    elif command == "reserve":
        booking = engine.reserve(args.passenger_id, args.flight_number, args.seat_number, args.name)
        print(f"Seat {booking.seat_number} on {booking.flight_number} booked for {booking.passenger_id}.")
    elif command == "modify-booking":
        booking = engine.modify_booking(args.passenger_id, args.name, args.flight_number, args.seat_number)
        print(_render_table(_passenger_rows([booking]), PASSENGER_HEADERS))
    elif command == "cancel":
        booking = engine.cancel_reservation(args.passenger_id)
        print(f"Reservation of {booking.passenger_id} on {booking.flight_number} cancelled.")
    elif command == "flights":
        print(_render_table(_flight_rows(queries.list_flights(store)), FLIGHT_HEADERS))
    elif command == "passengers":
        bookings = queries.list_passengers(store, args.flight_number)
        print(_render_table(_passenger_rows(bookings), PASSENGER_HEADERS))
    elif command == "seats":
        free = queries.free_seats(store, args.flight_number)
        taken = queries.taken_seats(store, args.flight_number)
        print(f"Taken seats: {_seat_list(taken)}")
        print(f"Free seats: {_seat_list(free)}")
    elif command == "summary":
        summary = queries.summarize_capacity(store)
        print(tabulate(summary, headers="keys", tablefmt="github") if summary else "(none)")
    elif command == "audit":
        problems = queries.audit_inventory(store)
        if problems:
            print(tabulate(problems, headers="keys", tablefmt="github"))
            return 2
        print("All ticket counters match their bookings.")
    elif command == "seed":
        result = generate_sample_data(store, flights=args.flights, passengers=args.passengers)
        print(f"Created {result['flights']} flight(s) and {result['bookings']} booking(s).")
    else:  # pragma: no cover - argparse rejects unknown commands
        raise ValueError(f"Unsupported command '{command}'.")
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        store = init_db(args.db_url)
    except ReservationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    try:
        return run_command(args, store)
    except (ReservationError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        store.dispose()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
