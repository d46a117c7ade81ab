"""Error kinds raised by the repository and the reservation engine."""
from __future__ import annotations


class ReservationError(RuntimeError):
    """Base class for every typed failure of an inventory operation."""

    kind = "error"


class NotFoundError(ReservationError):
    """Raised when a referenced flight or passenger does not exist."""

    kind = "not_found"


class ConflictError(ReservationError):
    """Raised when creating a record whose identity is already taken."""

    kind = "conflict"


class SeatTakenError(ReservationError):
    """Raised when a seat on a flight is already held by another passenger."""

    kind = "seat_taken"


class ExhaustedError(ReservationError):
    """Raised when a flight has no tickets left."""

    kind = "exhausted"


class CapacityViolationError(ReservationError):
    """Raised when a flight would be resized below its booked seat count."""

    kind = "capacity_violation"


class StoreError(ReservationError):
    """Raised when the underlying database fails."""

    kind = "store_error"


__all__ = [
    "ReservationError",
    "NotFoundError",
    "ConflictError",
    "SeatTakenError",
    "ExhaustedError",
    "CapacityViolationError",
    "StoreError",
]
