"""Read-only views over the inventory.

Each helper opens its own transaction so that a reservation committed by
another caller is seen either completely or not at all.
"""
from __future__ import annotations

from typing import List, Set

from sqlalchemy import func, select

from . import repository
from .database import Store
from .models import Booking, Flight


def flight_exists(store: Store, flight_number: str) -> bool:
    return store.with_transaction(lambda session: repository.flight_exists(session, flight_number))


def passenger_exists(store: Store, passenger_id: str) -> bool:
    return store.with_transaction(lambda session: repository.passenger_exists(session, passenger_id))


def get_flight(store: Store, flight_number: str) -> Flight:
    return store.with_transaction(lambda session: repository.get_flight(session, flight_number))


def get_booking(store: Store, passenger_id: str) -> Booking:
    return store.with_transaction(lambda session: repository.get_booking(session, passenger_id))


def list_flights(store: Store) -> List[Flight]:
    return store.with_transaction(repository.list_flights)


def list_passengers(store: Store, flight_number: str | None = None) -> List[Booking]:
    return store.with_transaction(
        lambda session: repository.list_bookings(session, flight_number)
    )


def taken_seats(store: Store, flight_number: str) -> Set[int]:
    return store.with_transaction(lambda session: repository.taken_seats(session, flight_number))


def free_seats(store: Store, flight_number: str) -> List[int]:
    """Seat numbers ``1..total_tickets`` that nobody holds yet."""

    def body(session) -> List[int]:
        flight = repository.get_flight(session, flight_number)
        taken = repository.taken_seats(session, flight_number)
        return [seat for seat in range(1, flight.total_tickets + 1) if seat not in taken]

    return store.with_transaction(body)


def _capacity_rows(session):
    return session.execute(
        select(
            Flight.flight_number,
            Flight.starting_point,
            Flight.destination,
            Flight.available_tickets,
            Flight.total_tickets,
            func.count(Booking.passenger_id).label("bookings"),
        )
        .outerjoin(Booking, Booking.flight_number == Flight.flight_number)
        .group_by(
            Flight.flight_number,
            Flight.starting_point,
            Flight.destination,
            Flight.available_tickets,
            Flight.total_tickets,
        )
        .order_by(Flight.flight_number)
    ).all()


def summarize_capacity(store: Store) -> List[dict]:
    rows = store.with_transaction(_capacity_rows)
    return [
        {
            "flight": row.flight_number,
            "route": f"{row.starting_point}-{row.destination}",
            "available": row.available_tickets,
            "capacity": row.total_tickets,
            "bookings": row.bookings,
        }
        for row in rows
    ]


def audit_inventory(store: Store) -> List[dict]:
    """Return every flight whose counter disagrees with its bookings.

    An empty list means the store is consistent.
    """

    return [
        dict(entry, expected=entry["capacity"] - entry["bookings"])
        for entry in summarize_capacity(store)
        if entry["available"] != entry["capacity"] - entry["bookings"]
    ]


__all__ = [
    "audit_inventory",
    "flight_exists",
    "free_seats",
    "get_booking",
    "get_flight",
    "list_flights",
    "list_passengers",
    "passenger_exists",
    "summarize_capacity",
    "taken_seats",
]
