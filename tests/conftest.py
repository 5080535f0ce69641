import os
import pathlib
import sys
from datetime import date, datetime, timezone

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
os.environ.setdefault("APP_ENV", "test")

import pytest

from fleetrent import create_app
from fleetrent.models.rental import Customer
from fleetrent.models.store import MemoryRepository
from fleetrent.models.vehicle import Vehicle
from fleetrent.services.catalog import RentalCatalog
from fleetrent.services.common import sequence_ids
from fleetrent.services.notifications import Notifier


class Clock:
    """Settable 'today' so pickup and late-return rules can be exercised."""

    def __init__(self, today: date):
        self.current = today

    def today(self) -> date:
        return self.current

    def now(self) -> datetime:
        return datetime(self.current.year, self.current.month, self.current.day, 9, 0, tzinfo=timezone.utc)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def notify_approval(self, rental, ticket):
        self.sent.append(("approval", rental.rental_id, ticket.ticket_id))

    def notify_rejection(self, rental, reason):
        self.sent.append(("rejection", rental.rental_id, reason))

    def notify_return(self, rental):
        self.sent.append(("return", rental.rental_id))

    def notify_critical_maintenance(self, vehicle, issue):
        self.sent.append(("critical", vehicle.vehicle_id, issue.issue_id))

    def notify_due_soon(self, rental):
        self.sent.append(("due_soon", rental.rental_id))

    def notify_overdue(self, rental):
        self.sent.append(("overdue", rental.rental_id))

    def kinds(self):
        return [s[0] for s in self.sent]


@pytest.fixture
def clock():
    return Clock(date(2024, 1, 1))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def repo():
    return MemoryRepository()


@pytest.fixture
def catalog(clock, notifier, repo):
    return RentalCatalog(
        repository=repo,
        notifier=notifier,
        today=clock.today,
        now=clock.now,
        rental_ids=sequence_ids("R"),
        ticket_id_factory=sequence_ids("TKT-"),
    )


def make_vehicle(vid="V1", base_price=100.0, insurance_rate=0.10, discounts=None, **kw):
    return Vehicle(
        vehicle_id=vid,
        brand=kw.pop("brand", "Toyota"),
        model=kw.pop("model", "Corolla"),
        base_price=base_price,
        insurance_rate=insurance_rate,
        long_term_discounts=dict(discounts or {}),
        plate_no=kw.pop("plate_no", "ABC123"),
        **kw,
    )


@pytest.fixture
def vehicle(catalog):
    """Base price 100/day, no discounts, insurance 10%."""
    ok, v, err = catalog.add_vehicle(make_vehicle())
    assert ok, err
    return v


@pytest.fixture
def alice():
    return Customer(name="Alice Tan", contact="012-3456789", email="alice@example.com")


@pytest.fixture
def bob():
    return Customer(name="Bob Lee", contact="019-8765432")


@pytest.fixture
def client(catalog):
    """Flask test client bound to the same catalog the unit fixtures use."""
    app = create_app({"TESTING": True}, catalog=catalog)
    with app.test_client() as c:
        yield c
