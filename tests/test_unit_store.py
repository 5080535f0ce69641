import pickle
from datetime import date

from conftest import make_vehicle
from fleetrent.models.rental import Customer, Rental
from fleetrent.models.store import PickleRepository


def test_missing_file_starts_empty(tmp_path):
    repo = PickleRepository(tmp_path / "data.pkl")
    assert repo.load_vehicles() == []
    assert repo.load_rentals() == []
    assert repo.load_tickets() == []


def test_saved_state_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "data.pkl"
    repo = PickleRepository(path)
    rental = Rental("R1", Customer("Alice Tan"), "V1", date(2024, 1, 1), date(2024, 1, 5), "alice",
                    total_fee=500.0)
    repo.save_vehicles([make_vehicle()])
    repo.save_rentals([rental])

    again = PickleRepository(path)

    assert [v.vehicle_id for v in again.load_vehicles()] == ["V1"]
    assert again.load_rentals() == [rental]
    assert not (tmp_path / "nested" / "data.pkl.tmp").exists()


def test_incompatible_file_is_backed_up(tmp_path):
    path = tmp_path / "data.pkl"
    path.write_bytes(pickle.dumps(["not", "a", "catalog"]))

    repo = PickleRepository(path)

    assert repo.load_vehicles() == []
    assert (tmp_path / "data.pkl.bak").exists()
    assert not path.exists()


def test_empty_file_starts_empty(tmp_path):
    path = tmp_path / "data.pkl"
    path.write_bytes(b"")
    repo = PickleRepository(path)
    assert repo.load_rentals() == []
