"""Seat inventory: flights, passengers and consistent seat reservations."""
from typing import Any

from .database import Store, create_session_factory, init_db, session_scope
from .dataset import generate_sample_data
from .errors import (
    CapacityViolationError,
    ConflictError,
    ExhaustedError,
    NotFoundError,
    ReservationError,
    SeatTakenError,
    StoreError,
)
from .queries import (
    audit_inventory,
    flight_exists,
    free_seats,
    get_flight,
    list_flights,
    list_passengers,
    passenger_exists,
    summarize_capacity,
    taken_seats,
)
from .services import ReservationEngine


def create_app(*args: Any, **kwargs: Any):  # pragma: no cover - thin wrapper
    from .web import create_app as _create_app

    return _create_app(*args, **kwargs)


def cli_main(*args: Any, **kwargs: Any) -> int:  # pragma: no cover - thin wrapper
    from .cli import main as _cli_main

    return _cli_main(*args, **kwargs)


__all__ = [
    "CapacityViolationError",
    "ConflictError",
    "ExhaustedError",
    "NotFoundError",
    "ReservationEngine",
    "ReservationError",
    "SeatTakenError",
    "Store",
    "StoreError",
    "audit_inventory",
    "cli_main",
    "create_app",
    "create_session_factory",
    "flight_exists",
    "free_seats",
    "generate_sample_data",
    "get_flight",
    "init_db",
    "list_flights",
    "list_passengers",
    "passenger_exists",
    "session_scope",
    "summarize_capacity",
    "taken_seats",
]
