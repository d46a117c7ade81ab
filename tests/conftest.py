from __future__ import annotations

import pytest

from seat_inventory.database import Store, init_db
from seat_inventory.services import ReservationEngine


def make_store(tmp_path, name: str = "inventory.db") -> Store:
    return init_db(f"sqlite+pysqlite:///{tmp_path / name}")


@pytest.fixture
def store(tmp_path):
    store = make_store(tmp_path)
    yield store
    store.drop_schema()
    store.dispose()


@pytest.fixture
def engine(store):
    return ReservationEngine(store)


@pytest.fixture
def aa100(engine):
    return engine.add_flight(
        "AA100",
        airline_name="American",
        starting_point="JFK",
        destination="LAX",
        total_tickets=2,
    )
