from fleetrent import create_app
from fleetrent.models.vehicle import Vehicle

DEMO_VEHICLES = [
    {"vehicle_id": "CAR-001", "brand": "Toyota", "model": "Corolla", "plate_no": "TYC101",
     "base_price": 45.0, "insurance_rate": 0.10, "long_term_discounts": {7: 0.10, 14: 0.15}},
    {"vehicle_id": "CAR-002", "brand": "Honda", "model": "Civic", "plate_no": "HDC202",
     "base_price": 50.0, "insurance_rate": 0.10, "long_term_discounts": {7: 0.10}},
    {"vehicle_id": "MTB-001", "brand": "Yamaha", "model": "MT-07", "plate_no": "YMT303",
     "vehicle_type": "motorbike", "base_price": 40.0, "insurance_rate": 0.15},
    {"vehicle_id": "TRK-001", "brand": "Isuzu", "model": "N-Series", "plate_no": "ISN404",
     "vehicle_type": "truck", "base_price": 95.0, "insurance_rate": 0.12,
     "long_term_discounts": {3: 0.05, 10: 0.12}},
]


def seed_vehicles(catalog) -> list[str]:
    """
    Register the demo fleet. Vehicles already in the catalog are left alone,
    so running the script twice is harmless. Returns the ids that were added.
    """
    added = []
    for row in DEMO_VEHICLES:
        if catalog.get_vehicle(row["vehicle_id"]) is not None:
            continue
        outcome = catalog.add_vehicle(Vehicle(**row))
        if outcome.ok:
            added.append(row["vehicle_id"])
        else:
            print(f"⚠️  {row['vehicle_id']}: {outcome.message}")
    return added


def main():
    app = create_app()
    with app.app_context():
        catalog = app.extensions["fleetrent"]
        added = seed_vehicles(catalog)

        print(f"✅ Seed complete: {len(added)} vehicle(s) added, {len(catalog.vehicles)} in the fleet.")
        print(f"💾 Data file: {app.config['DATA_PATH'] or '(in memory)'}")


if __name__ == "__main__":
    main()
