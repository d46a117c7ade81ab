"""Utilities to populate the database with sample data for tests and demos."""
from __future__ import annotations

import logging
import random
from typing import Dict, Sequence

from .database import Store
from .errors import ReservationError
from .queries import free_seats, list_flights
from .services import ReservationEngine

logger = logging.getLogger(__name__)

AIRPORTS: Sequence[str] = (
    "ATL",
    "PEK",
    "DXB",
    "LAX",
    "HND",
    "ORD",
    "LHR",
    "HKG",
    "PVG",
    "CDG",
)
AIRLINES = ("Aurora Air", "Blue Meridian", "Coastal Wings", "Northwind")
FIRST_NAMES = ("Ava", "Noah", "Liam", "Mia", "Lucas", "Emma", "Ethan", "Isabella")
LAST_NAMES = ("Johnson", "Williams", "Smith", "Brown", "Garcia", "Lee")


def generate_sample_data(
    store: Store,
    *,
    flights: int = 25,
    passengers: int = 200,
    seed: int = 42,
) -> Dict[str, int]:
    """Populate the store with deterministic pseudo-random flights and bookings.

    Passengers land on random flights and random free seats. Attempts that
    hit a full flight are skipped, so the returned ``bookings`` count may be
    lower than ``passengers``.
    """

    rng = random.Random(seed)
    engine = ReservationEngine(store)
    for index in range(flights):
        origin, destination = rng.sample(AIRPORTS, 2)
        engine.add_flight(
            f"AR{1000 + index}",
            airline_name=rng.choice(AIRLINES),
            starting_point=origin,
            destination=destination,
            total_tickets=rng.choice((6, 12, 30)),
        )

    flight_numbers = [flight.flight_number for flight in list_flights(store)]
    if not flight_numbers:
        return {"flights": 0, "bookings": 0}

    successful = 0
    for index in range(passengers):
        flight_number = rng.choice(flight_numbers)
        seats = free_seats(store, flight_number)
        if not seats:
            continue
        name = f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}"
        try:
            engine.reserve(f"P{index:05d}", flight_number, rng.choice(seats), name)
        except ReservationError as exc:
            logger.debug("Skipped sample booking %d: %s", index, exc)
            continue
        successful += 1
    return {"flights": flights, "bookings": successful}


__all__ = ["generate_sample_data"]
