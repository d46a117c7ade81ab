from __future__ import annotations

from fastapi.testclient import TestClient

from seat_inventory import web


def _client(store):
    return TestClient(web.create_app(store))


def _add_flight(client, number="AA100", tickets=2):
    return client.post(
        "/flights",
        json={
            "flight_number": number,
            "airline_name": "American",
            "starting_point": "JFK",
            "destination": "LAX",
            "total_tickets": tickets,
        },
    )


def test_reservation_endpoints(store):
    client = _client(store)
    response = _add_flight(client)
    assert response.status_code == 201
    assert response.json()["available_tickets"] == 2

    response = client.post(
        "/reservations",
        json={"passenger_id": "P1", "name": "Ada", "flight_number": "AA100", "seat_number": 1},
    )
    assert response.status_code == 201

    response = client.post(
        "/reservations",
        json={"passenger_id": "P2", "name": "Grace", "flight_number": "AA100", "seat_number": 1},
    )
    assert response.status_code == 409
    assert response.json()["error"] == "seat_taken"

    response = client.get("/flights/AA100/seats")
    assert response.json() == {"flight_number": "AA100", "taken": [1], "free": [2]}

    response = client.put("/reservations/P1", json={"name": "Ada L.", "flight_number": "AA100", "seat_number": 2})
    assert response.status_code == 200
    assert response.json()["seat_number"] == 2

    response = client.patch("/flights/AA100", json={"total_tickets": 0})
    assert response.status_code == 409
    assert response.json()["error"] == "capacity_violation"

    response = client.delete("/reservations/P1")
    assert response.status_code == 200
    assert client.get("/flights/AA100").json()["available_tickets"] == 2
    assert client.get("/audit").json() == {"consistent": True, "flights": []}


def test_missing_records_return_404(store):
    client = _client(store)

    assert client.get("/flights/ZZ9").status_code == 404
    assert client.delete("/reservations/ghost").status_code == 404
    assert client.delete("/flights/ZZ9").json()["error"] == "not_found"


def test_invalid_payload_is_rejected(store):
    client = _client(store)
    _add_flight(client)

    response = client.post(
        "/reservations",
        json={"passenger_id": "P1", "name": "Ada", "flight_number": "AA100", "seat_number": 0},
    )

    assert response.status_code == 422


def test_delete_flight_endpoint_reports_cascade(store):
    client = _client(store)
    _add_flight(client, tickets=3)
    for seat in (1, 2):
        client.post(
            "/reservations",
            json={"passenger_id": f"P{seat}", "name": "Test", "flight_number": "AA100", "seat_number": seat},
        )

    response = client.delete("/flights/AA100")

    assert response.json() == {"flight_number": "AA100", "bookings_removed": 2}
    assert client.get("/passengers").json() == []


def test_manifest_downloads(store):
    client = _client(store)
    _add_flight(client, tickets=3)
    client.post(
        "/reservations",
        json={"passenger_id": "P7", "name": "Ada", "flight_number": "AA100", "seat_number": 3},
    )

    response = client.get("/flights/AA100/manifest/csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "Seat,Passenger ID,Name" in response.text
    assert "3,P7,Ada" in response.text

    response = client.get("/flights/AA100/manifest/xlsx")
    assert response.status_code == 200
    assert response.content[:2] == b"PK"

    assert client.get("/flights/ZZ9/manifest/csv").status_code == 404
