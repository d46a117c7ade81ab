"""FastAPI application exposing the reservation engine over HTTP."""
from __future__ import annotations

from io import BytesIO, StringIO
from typing import Dict, Iterable, List, Literal, Optional

import pandas as pd
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from . import queries
from .database import Store, init_db
from .errors import ReservationError
from .models import Booking, Flight
from .services import ReservationEngine

_STATUS_BY_KIND: Dict[str, int] = {
    "not_found": 404,
    "conflict": 409,
    "seat_taken": 409,
    "exhausted": 409,
    "capacity_violation": 409,
    "store_error": 503,
}


class FlightIn(BaseModel):
    flight_number: str
    airline_name: str
    starting_point: str
    destination: str
    total_tickets: int = Field(ge=0)


class FlightChanges(BaseModel):
    airline_name: Optional[str] = None
    starting_point: Optional[str] = None
    destination: Optional[str] = None
    total_tickets: Optional[int] = Field(default=None, ge=0)


class ReservationIn(BaseModel):
    passenger_id: str
    name: str
    flight_number: str
    seat_number: int = Field(ge=1)


class BookingChanges(BaseModel):
    name: str
    flight_number: str
    seat_number: int = Field(ge=1)


def _flight_payload(flight: Flight) -> dict:
    return {
        "flight_number": flight.flight_number,
        "airline_name": flight.airline_name,
        "starting_point": flight.starting_point,
        "destination": flight.destination,
        "total_tickets": flight.total_tickets,
        "available_tickets": flight.available_tickets,
    }


def _booking_payload(booking: Booking) -> dict:
    return {
        "passenger_id": booking.passenger_id,
        "name": booking.name,
        "flight_number": booking.flight_number,
        "seat_number": booking.seat_number,
    }


def _manifest_dataframe(bookings: Iterable[Booking]) -> pd.DataFrame:
    data: List[Dict[str, str | int]] = [
        {
            "Seat": booking.seat_number,
            "Passenger ID": booking.passenger_id,
            "Name": booking.name,
        }
        for booking in bookings
    ]
    frame = pd.DataFrame(data, columns=["Seat", "Passenger ID", "Name"])
    return frame.sort_values("Seat").reset_index(drop=True)


def create_app(store: Store | None = None) -> FastAPI:
    """Return an application bound to ``store`` (or the configured database)."""

    if store is None:
        store = init_db()
    engine = ReservationEngine(store)

    app = FastAPI(title="Seat Inventory", description="Flights, passengers and seat reservations")
    app.state.store = store

    @app.exception_handler(ReservationError)
    async def reservation_error(request: Request, exc: ReservationError) -> JSONResponse:
        return JSONResponse(
            status_code=_STATUS_BY_KIND.get(exc.kind, 500),
            content={"error": exc.kind, "detail": str(exc)},
        )

    @app.exception_handler(ValueError)
    async def invalid_input(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": "invalid", "detail": str(exc)})

    @app.get("/flights")
    def list_flights() -> List[dict]:
        return [_flight_payload(flight) for flight in queries.list_flights(store)]

    @app.post("/flights", status_code=201)
    def add_flight(payload: FlightIn) -> dict:
        flight = engine.add_flight(
            payload.flight_number,
            airline_name=payload.airline_name,
            starting_point=payload.starting_point,
            destination=payload.destination,
            total_tickets=payload.total_tickets,
        )
        return _flight_payload(flight)

    @app.get("/flights/{flight_number}")
    def get_flight(flight_number: str) -> dict:
        return _flight_payload(queries.get_flight(store, flight_number))

    @app.patch("/flights/{flight_number}")
    def modify_flight(flight_number: str, payload: FlightChanges) -> dict:
        flight = engine.modify_flight(
            flight_number,
            airline_name=payload.airline_name,
            starting_point=payload.starting_point,
            destination=payload.destination,
            total_tickets=payload.total_tickets,
        )
        return _flight_payload(flight)

    @app.delete("/flights/{flight_number}")
    def delete_flight(flight_number: str) -> dict:
        removed = engine.delete_flight(flight_number)
        return {"flight_number": flight_number, "bookings_removed": removed}

    @app.get("/flights/{flight_number}/seats")
    def seats(flight_number: str) -> dict:
        free = queries.free_seats(store, flight_number)
        taken = queries.taken_seats(store, flight_number)
        return {"flight_number": flight_number, "taken": sorted(taken), "free": free}

    @app.get("/flights/{flight_number}/manifest/{file_format}")
    def manifest(flight_number: str, file_format: Literal["csv", "xlsx"]) -> StreamingResponse:
        queries.get_flight(store, flight_number)
        dataframe = _manifest_dataframe(queries.list_passengers(store, flight_number))
        filename = f"{flight_number.lower()}_manifest.{file_format}"
        headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}

        if file_format == "csv":
            buffer = StringIO()
            dataframe.to_csv(buffer, index=False)
            buffer.seek(0)
            return StreamingResponse(iter([buffer.getvalue()]), media_type="text/csv", headers=headers)

        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            dataframe.to_excel(writer, index=False, sheet_name="Manifest")
        buffer.seek(0)
        return StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers=headers,
        )

    @app.get("/passengers")
    def list_passengers(flight_number: Optional[str] = Query(None, alias="flight")) -> List[dict]:
        return [_booking_payload(booking) for booking in queries.list_passengers(store, flight_number)]

    @app.post("/reservations", status_code=201)
    def reserve(payload: ReservationIn) -> dict:
        booking = engine.reserve(
            payload.passenger_id, payload.flight_number, payload.seat_number, payload.name
        )
        return _booking_payload(booking)

    @app.put("/reservations/{passenger_id}")
    def modify_booking(passenger_id: str, payload: BookingChanges) -> dict:
        booking = engine.modify_booking(
            passenger_id, payload.name, payload.flight_number, payload.seat_number
        )
        return _booking_payload(booking)

    @app.delete("/reservations/{passenger_id}")
    def cancel(passenger_id: str) -> dict:
        return _booking_payload(engine.cancel_reservation(passenger_id))

    @app.get("/summary")
    def summary() -> List[dict]:
        return queries.summarize_capacity(store)

    @app.get("/audit")
    def audit() -> dict:
        problems = queries.audit_inventory(store)
        return {"consistent": not problems, "flights": problems}

    return app


__all__ = ["create_app"]
