"""Development scripts: seeding the demo fleet and clearing the data file."""

import reset_data
import seeds
from fleetrent.models.store import PickleRepository


def test_seed_is_idempotent(catalog):
    first = seeds.seed_vehicles(catalog)
    second = seeds.seed_vehicles(catalog)

    assert first == [row["vehicle_id"] for row in seeds.DEMO_VEHICLES]
    assert second == []
    assert catalog.get_vehicle("TRK-001").long_term_discounts == {3: 0.05, 10: 0.12}
    assert catalog.get_vehicle("MTB-001").vehicle_type == "motorbike"


def test_seeded_fleet_is_bookable(catalog, alice):
    seeds.seed_vehicles(catalog)
    ok, rental, err = catalog.create_rental(alice, "CAR-001", "2024-01-01", "2024-01-07")
    assert ok, err
    assert rental.total_fee == 283.5


def test_reset_clears_saved_catalog(tmp_path, catalog):
    path = tmp_path / "data.pkl"
    repo = PickleRepository(path)
    seeds.seed_vehicles(catalog)
    repo.save_vehicles(list(catalog.vehicles.values()))
    assert PickleRepository(path).load_vehicles()

    reset_data.reset(path)

    reopened = PickleRepository(path)
    assert reopened.load_vehicles() == []
    assert reopened.load_rentals() == []
    assert reopened.load_tickets() == []
