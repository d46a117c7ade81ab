from __future__ import annotations

from seat_inventory import cli, queries
from seat_inventory.database import Store


def _run(db_url, capsys, *argv):
    code = cli.main(["--db-url", db_url, *argv])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def test_cli_reservation_flow(tmp_path, capsys):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"

    code, out, _ = _run(db_url, capsys, "add-flight", "AA100", "--airline", "American", "--from", "JFK", "--to", "LAX", "--tickets", "2")
    assert code == 0
    assert "AA100 added with 2 tickets" in out

    code, out, _ = _run(db_url, capsys, "reserve", "P1", "AA100", "1", "--name", "Ada")
    assert code == 0
    assert "Seat 1 on AA100 booked for P1" in out

    code, _, err = _run(db_url, capsys, "reserve", "P2", "AA100", "1", "--name", "Grace")
    assert code == 1
    assert "taken" in err

    code, out, _ = _run(db_url, capsys, "seats", "AA100")
    assert "Taken seats: 1" in out
    assert "Free seats: 2" in out

    code, out, _ = _run(db_url, capsys, "flights")
    assert "AA100" in out
    assert "American" in out

    code, out, _ = _run(db_url, capsys, "modify-booking", "P1", "AA100", "2", "--name", "Ada L.")
    assert code == 0
    assert "Ada L." in out

    code, out, _ = _run(db_url, capsys, "passengers")
    assert "P1" in out

    code, _, err = _run(db_url, capsys, "modify-flight", "AA100", "--tickets", "0")
    assert code == 1
    assert "cannot shrink" in err

    code, out, _ = _run(db_url, capsys, "cancel", "P1")
    assert code == 0
    assert "cancelled" in out

    code, out, _ = _run(db_url, capsys, "audit")
    assert code == 0
    assert "match" in out

    code, out, _ = _run(db_url, capsys, "delete-flight", "AA100")
    assert code == 0
    assert "0 booking(s)" in out

    store = Store.open(db_url)
    try:
        assert queries.list_flights(store) == []
    finally:
        store.dispose()


def test_cli_reports_missing_records(tmp_path, capsys):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"

    code, _, err = _run(db_url, capsys, "cancel", "ghost")

    assert code == 1
    assert "passenger ghost not found" in err


def test_cli_seed_and_summary(tmp_path, capsys):
    db_url = f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"

    code, out, _ = _run(db_url, capsys, "seed", "--flights", "3", "--passengers", "10")
    assert code == 0
    assert "Created 3 flight(s)" in out

    code, out, _ = _run(db_url, capsys, "summary")
    assert code == 0
    assert "AR1000" in out
