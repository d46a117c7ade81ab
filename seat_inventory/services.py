"""Reservation engine: the only writer that keeps seat counters honest.

Every public method runs as a single store transaction. Preconditions are
checked inside that transaction, after the flight rows involved have been
locked, so a concurrent caller can never slip between a check and the write
that depends on it. For each flight the engine maintains::

    available_tickets == total_tickets - number of bookings on the flight
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError

from . import repository
from .database import Store
from .errors import (
    CapacityViolationError,
    ConflictError,
    ExhaustedError,
    NotFoundError,
    SeatTakenError,
)
from .models import Booking, Flight

logger = logging.getLogger(__name__)


def _require_text(**values: str) -> None:
    for label, value in values.items():
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{label} must be a non-empty string")


def _require_seat(seat_number: int) -> None:
    if isinstance(seat_number, bool) or not isinstance(seat_number, int) or seat_number < 1:
        raise ValueError("seat_number must be an integer >= 1")


def _require_capacity(total_tickets: int) -> None:
    if isinstance(total_tickets, bool) or not isinstance(total_tickets, int) or total_tickets < 0:
        raise ValueError("total_tickets must be an integer >= 0")


class ReservationEngine:
    """Atomic reservation operations over a :class:`~seat_inventory.database.Store`."""

    def __init__(self, store: Store):
        self.store = store

    def add_flight(
        self,
        flight_number: str,
        *,
        airline_name: str,
        starting_point: str,
        destination: str,
        total_tickets: int,
    ) -> Flight:
        """Create a flight with every ticket available."""

        _require_text(
            flight_number=flight_number,
            airline_name=airline_name,
            starting_point=starting_point,
            destination=destination,
        )
        _require_capacity(total_tickets)
        with self.store.transaction() as session:
            try:
                flight = repository.create_flight(
                    session,
                    flight_number=flight_number,
                    airline_name=airline_name,
                    starting_point=starting_point,
                    destination=destination,
                    total_tickets=total_tickets,
                )
            except IntegrityError as exc:
                raise ConflictError(f"flight {flight_number} already exists") from exc
        logger.info("Added flight %s with %d tickets", flight_number, total_tickets)
        return flight

    def reserve(self, passenger_id: str, flight_number: str, seat_number: int, name: str) -> Booking:
        """Book ``seat_number`` on ``flight_number`` for a new passenger."""

        _require_text(passenger_id=passenger_id, flight_number=flight_number, name=name)
        _require_seat(seat_number)
        with self.store.transaction() as session:
            if repository.passenger_exists(session, passenger_id):
                raise ConflictError(f"passenger {passenger_id} already exists")
            flight = repository.get_flight(session, flight_number, for_update=True)
            if flight.available_tickets <= 0:
                raise ExhaustedError(f"flight {flight_number} has no tickets left")
            if repository.seat_holder(session, flight_number, seat_number) is not None:
                raise SeatTakenError(f"seat {seat_number} on flight {flight_number} is taken")
            try:
                with session.begin_nested():
                    booking = repository.create_booking(
                        session,
                        passenger_id=passenger_id,
                        name=name,
                        flight_number=flight_number,
                        seat_number=seat_number,
                    )
            except IntegrityError as exc:
                # The existence check above holds no lock; a concurrent
                # reserve may have inserted the same passenger since.
                if repository.find_booking(session, passenger_id) is not None:
                    raise ConflictError(f"passenger {passenger_id} already exists") from exc
                raise SeatTakenError(
                    f"seat {seat_number} on flight {flight_number} is taken"
                ) from exc
            repository.adjust_available(session, flight_number, -1)
        logger.info("Reserved seat %d on %s for %s", seat_number, flight_number, passenger_id)
        return booking

    def cancel_reservation(self, passenger_id: str) -> Booking:
        """Drop a passenger's booking and hand the seat back to the flight."""

        with self.store.transaction() as session:
            booking = repository.get_booking(session, passenger_id, for_update=True)
            flight_number = booking.flight_number
            repository.delete_booking(session, passenger_id)
            if not repository.adjust_available(session, flight_number, 1):
                logger.warning(
                    "Flight %s vanished while cancelling %s; nothing to restore",
                    flight_number,
                    passenger_id,
                )
        logger.info("Cancelled booking of %s on %s", passenger_id, flight_number)
        return booking

    def modify_booking(
        self,
        passenger_id: str,
        new_name: str,
        new_flight_number: str,
        new_seat_number: int,
    ) -> Booking:
        """Rename a passenger and/or move them to another seat or flight.

        Moving to a different flight returns one ticket to the old flight and
        takes one from the new flight in the same transaction.
        """

        _require_text(name=new_name, flight_number=new_flight_number)
        _require_seat(new_seat_number)
        with self.store.transaction() as session:
            booking = repository.get_booking(session, passenger_id, for_update=True)
            old_flight_number = booking.flight_number
            # Fixed lock order so two moves in opposite directions cannot deadlock.
            locked: Dict[str, Optional[Flight]] = {}
            for flight_number in sorted({old_flight_number, new_flight_number}):
                locked[flight_number] = repository.find_flight(session, flight_number, for_update=True)
            new_flight = locked[new_flight_number]
            if new_flight is None:
                raise NotFoundError(f"flight {new_flight_number} not found")
            holder = repository.seat_holder(
                session, new_flight_number, new_seat_number, exclude_passenger=passenger_id
            )
            if holder is not None:
                raise SeatTakenError(
                    f"seat {new_seat_number} on flight {new_flight_number} is taken"
                )
            moving = new_flight_number != old_flight_number
            if moving and new_flight.available_tickets <= 0:
                raise ExhaustedError(f"flight {new_flight_number} has no tickets left")
            try:
                booking = repository.update_booking(
                    session,
                    passenger_id,
                    {
                        "name": new_name,
                        "flight_number": new_flight_number,
                        "seat_number": new_seat_number,
                    },
                )
            except IntegrityError as exc:
                raise SeatTakenError(
                    f"seat {new_seat_number} on flight {new_flight_number} is taken"
                ) from exc
            if moving:
                repository.adjust_available(session, old_flight_number, 1)
                repository.adjust_available(session, new_flight_number, -1)
        if moving:
            logger.info(
                "Moved %s from %s to seat %d on %s",
                passenger_id,
                old_flight_number,
                new_seat_number,
                new_flight_number,
            )
        else:
            logger.info("Updated booking of %s on %s", passenger_id, new_flight_number)
        return booking

    def delete_flight(self, flight_number: str) -> int:
        """Remove a flight and all of its bookings; returns the number of bookings dropped."""

        with self.store.transaction() as session:
            repository.get_flight(session, flight_number, for_update=True)
            removed = repository.delete_bookings_for_flight(session, flight_number)
            repository.delete_flight(session, flight_number)
        logger.info("Deleted flight %s and %d booking(s)", flight_number, removed)
        return removed

    def modify_flight(
        self,
        flight_number: str,
        *,
        airline_name: Optional[str] = None,
        starting_point: Optional[str] = None,
        destination: Optional[str] = None,
        total_tickets: Optional[int] = None,
    ) -> Flight:
        """Edit a flight's description or capacity.

        ``available_tickets`` is recomputed from the bookings actually on the
        flight. Shrinking below that count raises
        :class:`CapacityViolationError` and changes nothing.
        """

        fields = {
            name: value
            for name, value in (
                ("airline_name", airline_name),
                ("starting_point", starting_point),
                ("destination", destination),
            )
            if value is not None
        }
        if fields:
            _require_text(**fields)
        if total_tickets is not None:
            _require_capacity(total_tickets)
            fields["total_tickets"] = total_tickets

        with self.store.transaction() as session:
            flight = repository.get_flight(session, flight_number, for_update=True)
            booked = repository.count_bookings(session, flight_number)
            capacity = flight.total_tickets if total_tickets is None else total_tickets
            if capacity < booked:
                raise CapacityViolationError(
                    f"flight {flight_number} has {booked} booking(s); cannot shrink to {capacity}"
                )
            fields["available_tickets"] = capacity - booked
            flight = repository.update_flight(session, flight_number, fields)
        logger.info(
            "Modified flight %s (%d/%d available)",
            flight_number,
            flight.available_tickets,
            flight.total_tickets,
        )
        return flight


__all__ = ["ReservationEngine"]
