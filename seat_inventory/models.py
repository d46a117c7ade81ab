"""SQLAlchemy models for the seat inventory store."""
from __future__ import annotations

from typing import List

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        CheckConstraint("total_tickets >= 0", name="ck_total_tickets_non_negative"),
        CheckConstraint("available_tickets >= 0", name="ck_available_non_negative"),
        CheckConstraint("available_tickets <= total_tickets", name="ck_available_within_total"),
    )

    flight_number: Mapped[str] = mapped_column(String(16), primary_key=True)
    airline_name: Mapped[str] = mapped_column(String(80), nullable=False)
    starting_point: Mapped[str] = mapped_column(String(80), nullable=False)
    destination: Mapped[str] = mapped_column(String(80), nullable=False)
    total_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    available_tickets: Mapped[int] = mapped_column(Integer, nullable=False)

    bookings: Mapped[List["Booking"]] = relationship(back_populates="flight")

    def __repr__(self) -> str:
        return (
            f"Flight({self.flight_number!r}, {self.starting_point!r}->{self.destination!r}, "
            f"{self.available_tickets}/{self.total_tickets})"
        )


class Booking(Base):
    """A passenger holding one seat on one flight."""

    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("flight_number", "seat_number", name="uq_flight_seat"),
        CheckConstraint("seat_number >= 1", name="ck_seat_number_positive"),
    )

    passenger_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    flight_number: Mapped[str] = mapped_column(
        ForeignKey("flights.flight_number"), nullable=False, index=True
    )
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)

    flight: Mapped[Flight] = relationship(back_populates="bookings")

    def __repr__(self) -> str:
        return f"Booking({self.passenger_id!r}, {self.flight_number!r}, seat={self.seat_number})"


FLIGHT_FIELDS = ("airline_name", "starting_point", "destination", "total_tickets")
BOOKING_FIELDS = ("name", "flight_number", "seat_number")
