"""Row level access to flights and bookings.

Every function runs against the caller's :class:`~sqlalchemy.orm.Session`, so
several calls can share one transaction. None of the booking helpers touch
``Flight.available_tickets``; keeping the counter consistent is the job of
:mod:`seat_inventory.services`.
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Set

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.orm import Session

from .errors import ConflictError, NotFoundError
from .models import BOOKING_FIELDS, FLIGHT_FIELDS, Booking, Flight


def _check_fields(fields: Mapping[str, Any], allowed: tuple) -> None:
    unknown = sorted(set(fields) - set(allowed))
    if unknown:
        raise ValueError(f"cannot update field(s): {', '.join(unknown)}")


def flight_exists(session: Session, flight_number: str) -> bool:
    return bool(session.scalar(select(exists().where(Flight.flight_number == flight_number))))


def passenger_exists(session: Session, passenger_id: str) -> bool:
    return bool(session.scalar(select(exists().where(Booking.passenger_id == passenger_id))))


def find_flight(session: Session, flight_number: str, *, for_update: bool = False) -> Optional[Flight]:
    stmt = select(Flight).where(Flight.flight_number == flight_number)
    if for_update:
        stmt = stmt.with_for_update()
    return session.scalars(stmt.execution_options(populate_existing=True)).first()


def get_flight(session: Session, flight_number: str, *, for_update: bool = False) -> Flight:
    """Return the flight or raise :class:`NotFoundError`.

    ``for_update`` locks the row until the transaction ends on backends that
    support row locks.
    """

    flight = find_flight(session, flight_number, for_update=for_update)
    if flight is None:
        raise NotFoundError(f"flight {flight_number} not found")
    return flight


def find_booking(session: Session, passenger_id: str, *, for_update: bool = False) -> Optional[Booking]:
    stmt = select(Booking).where(Booking.passenger_id == passenger_id)
    if for_update:
        stmt = stmt.with_for_update()
    return session.scalars(stmt.execution_options(populate_existing=True)).first()


def get_booking(session: Session, passenger_id: str, *, for_update: bool = False) -> Booking:
    booking = find_booking(session, passenger_id, for_update=for_update)
    if booking is None:
        raise NotFoundError(f"passenger {passenger_id} not found")
    return booking


def taken_seats(session: Session, flight_number: str) -> Set[int]:
    """Seat numbers currently booked on ``flight_number`` (empty for unknown flights)."""

    return set(session.scalars(select(Booking.seat_number).where(Booking.flight_number == flight_number)))


def seat_holder(
    session: Session,
    flight_number: str,
    seat_number: int,
    *,
    exclude_passenger: Optional[str] = None,
) -> Optional[str]:
    """Return the passenger holding a seat, ignoring ``exclude_passenger``."""

    stmt = select(Booking.passenger_id).where(
        Booking.flight_number == flight_number,
        Booking.seat_number == seat_number,
    )
    if exclude_passenger is not None:
        stmt = stmt.where(Booking.passenger_id != exclude_passenger)
    return session.scalars(stmt).first()


def count_bookings(session: Session, flight_number: str) -> int:
    return int(
        session.scalar(
            select(func.count()).select_from(Booking).where(Booking.flight_number == flight_number)
        )
        or 0
    )


def list_flights(session: Session) -> List[Flight]:
    return list(session.scalars(select(Flight).order_by(Flight.flight_number)))


def list_bookings(session: Session, flight_number: Optional[str] = None) -> List[Booking]:
    stmt = select(Booking).order_by(Booking.passenger_id)
    if flight_number is not None:
        stmt = stmt.where(Booking.flight_number == flight_number)
    return list(session.scalars(stmt))


def create_flight(
    session: Session,
    *,
    flight_number: str,
    airline_name: str,
    starting_point: str,
    destination: str,
    total_tickets: int,
    available_tickets: Optional[int] = None,
) -> Flight:
    """Insert a flight. ``available_tickets`` is ignored; a new flight starts full."""

    if flight_exists(session, flight_number):
        raise ConflictError(f"flight {flight_number} already exists")
    flight = Flight(
        flight_number=flight_number,
        airline_name=airline_name,
        starting_point=starting_point,
        destination=destination,
        total_tickets=total_tickets,
        available_tickets=total_tickets,
    )
    session.add(flight)
    session.flush()
    return flight


def update_flight(session: Session, flight_number: str, fields: Mapping[str, Any]) -> Flight:
    """Overwrite descriptive fields or ``total_tickets`` as given.

    ``available_tickets`` is left alone, so shrinking ``total_tickets`` here
    can break the counter; go through the reservation engine for that.
    """

    _check_fields(fields, FLIGHT_FIELDS + ("available_tickets",))
    flight = get_flight(session, flight_number)
    for name, value in fields.items():
        setattr(flight, name, value)
    session.flush()
    return flight


def delete_flight(session: Session, flight_number: str) -> None:
    if not flight_exists(session, flight_number):
        raise NotFoundError(f"flight {flight_number} not found")
    remaining = count_bookings(session, flight_number)
    if remaining:
        raise ConflictError(f"flight {flight_number} still has {remaining} booking(s)")
    session.execute(delete(Flight).where(Flight.flight_number == flight_number))


def create_booking(
    session: Session,
    *,
    passenger_id: str,
    name: str,
    flight_number: str,
    seat_number: int,
) -> Booking:
    if passenger_exists(session, passenger_id):
        raise ConflictError(f"passenger {passenger_id} already exists")
    if not flight_exists(session, flight_number):
        raise NotFoundError(f"flight {flight_number} not found")
    booking = Booking(
        passenger_id=passenger_id,
        name=name,
        flight_number=flight_number,
        seat_number=seat_number,
    )
    session.add(booking)
    session.flush()
    return booking


def update_booking(session: Session, passenger_id: str, fields: Mapping[str, Any]) -> Booking:
    _check_fields(fields, BOOKING_FIELDS)
    booking = get_booking(session, passenger_id)
    if "flight_number" in fields and not flight_exists(session, fields["flight_number"]):
        raise NotFoundError(f"flight {fields['flight_number']} not found")
    for name, value in fields.items():
        setattr(booking, name, value)
    session.flush()
    return booking


def delete_booking(session: Session, passenger_id: str) -> Booking:
    booking = get_booking(session, passenger_id)
    session.delete(booking)
    session.flush()
    return booking


def delete_bookings_for_flight(session: Session, flight_number: str) -> int:
    result = session.execute(
        delete(Booking)
        .where(Booking.flight_number == flight_number)
        .execution_options(synchronize_session=False)
    )
    session.expire_all()
    return result.rowcount


def adjust_available(session: Session, flight_number: str, delta: int) -> int:
    """Shift a flight's counter by ``delta`` in SQL; returns rows touched (0 if the flight is gone)."""

    result = session.execute(
        update(Flight)
        .where(Flight.flight_number == flight_number)
        .values(available_tickets=Flight.available_tickets + delta)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


__all__ = [
    "adjust_available",
    "count_bookings",
    "create_booking",
    "create_flight",
    "delete_booking",
    "delete_bookings_for_flight",
    "delete_flight",
    "find_booking",
    "find_flight",
    "flight_exists",
    "get_booking",
    "get_flight",
    "list_bookings",
    "list_flights",
    "passenger_exists",
    "seat_holder",
    "taken_seats",
    "update_booking",
    "update_flight",
]
