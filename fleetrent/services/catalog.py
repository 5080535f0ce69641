"""
RentalCatalog: the aggregate that owns every vehicle and rental and exposes
the operations used by the outside world.

Every public command returns an ``Outcome``. Failures come back as
``Outcome(ok=False, error=<RentalError>)``; callers check ``ok`` before
assuming anything changed.

Locking: one re-entrant lock per rental id and per vehicle id, always taken
in that order. Side effects (save, notify) run after the locks are released.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, NamedTuple, Optional

import pytz

from fleetrent.exceptions import NotFoundError, RentalError, ValidationError
from fleetrent.models.rental import Customer, Rental
from fleetrent.models.vehicle import Vehicle
from fleetrent.services.availability import AvailabilityEngine
from fleetrent.services.common import as_date, check_range, ticket_ids, uuid_ids
from fleetrent.services.events import DomainEvent, EventDispatcher, TicketUsed, VehicleChanged
from fleetrent.services.lifecycle import RentalLifecycle
from fleetrent.services.maintenance import MaintenanceDesk
from fleetrent.services.notifications import LoggingNotifier
from fleetrent.services.pricing import FeeCalculator
from fleetrent.services.tickets import TicketGate
from fleetrent.utils.clock import make_today
from fleetrent.utils.constants import (
    BUFFER_DAYS,
    DEFAULT_DAMAGE_SEVERITY,
    RentalStatus,
    VehicleStatus,
)
from fleetrent.utils.locks import KeyedLocks

logger = logging.getLogger(__name__)


class Outcome(NamedTuple):
    ok: bool
    value: Any = None
    error: Optional[RentalError] = None

    @property
    def message(self) -> str:
        return self.error.message if self.error else "OK"


def _fail(error: RentalError) -> Outcome:
    return Outcome(False, None, error)


class RentalCatalog:

    def __init__(
            self,
            repository=None,
            notifier=None,
            today: Optional[Callable[[], date]] = None,
            now: Optional[Callable[[], datetime]] = None,
            rental_ids: Optional[Callable[[], str]] = None,
            ticket_id_factory: Optional[Callable[[], str]] = None,
            issue_ids: Optional[Callable[[], str]] = None,
            buffer_days: int = BUFFER_DAYS,
            pickup_location: Optional[str] = None,
    ):
        self.vehicles: dict[str, Vehicle] = {}
        self.rentals: dict[str, Rental] = {}

        self._today = today or make_today()
        self._now = now or (lambda: datetime.now(pytz.utc))
        self._locks = KeyedLocks()

        self.engine = AvailabilityEngine(self.rentals, buffer_days=buffer_days)
        self.pricing = FeeCalculator()
        self.tickets = TicketGate(ticket_id_factory or ticket_ids(self._now), self._today, self._now,
                                  pickup_location=pickup_location)
        self.maintenance = MaintenanceDesk(self.vehicles, self.engine,
                                           issue_ids or uuid_ids(), self._now)
        self.lifecycle = RentalLifecycle(self.rentals, self.engine, self.pricing, self.tickets,
                                         self.maintenance, rental_ids or uuid_ids(),
                                         self._today, self._now)

        self.repository = repository
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.dispatcher = EventDispatcher(repository, self.notifier, snapshot=self._snapshot)

    # --------------- Internals ---------------
    def _snapshot(self) -> tuple:
        return list(self.vehicles.values()), list(self.rentals.values()), self.tickets.all()

    def _vehicle(self, vehicle_id) -> Vehicle:
        v = self.vehicles.get(str(vehicle_id))
        if v is None:
            raise NotFoundError(f"Error: vehicle with ID '{vehicle_id}' not found")
        return v

    def _rental(self, rental_id) -> Rental:
        r = self.rentals.get(str(rental_id))
        if r is None:
            raise NotFoundError(f"Error: rental with ID '{rental_id}' not found")
        return r

    @staticmethod
    def _renter(customer: Optional[Customer], username: Optional[str]) -> str:
        """Login name for a booking; defaults to the customer's name."""
        if customer is None or not (customer.name or "").strip():
            raise ValidationError("Customer name is required")
        return username or customer.name

    def _run(self, action: str, fn: Callable[[list[DomainEvent]], Any]) -> Outcome:
        """Run ``fn`` and turn typed errors into a failed Outcome; dispatch its events."""
        events: list[DomainEvent] = []
        try:
            value = fn(events)
        except RentalError as e:
            logger.info("%s rejected: %s", action, e.message)
            return _fail(e)
        self.dispatcher.dispatch(events)
        return Outcome(True, value)

    def _on_rental(self, rental_id, action: str, fn) -> Outcome:
        """Lock rental then vehicle, and run ``fn(rental, vehicle, events)``."""

        def body(events):
            rental = self._rental(rental_id)
            with self._locks.hold(f"rental:{rental.rental_id}"):
                vehicle = self._vehicle(rental.vehicle_id)
                with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                    return fn(rental, vehicle, events)

        return self._run(action, body)

    # --------------- Loading ---------------
    def load(self) -> None:
        """Rebuild the indices from the repository."""
        if self.repository is None:
            return
        self.vehicles.clear()
        self.rentals.clear()
        for v in self.repository.load_vehicles():
            self.vehicles[v.vehicle_id] = v
        for r in self.repository.load_rentals():
            self.rentals[r.rental_id] = r
        self.tickets.load(self.repository.load_tickets())
        logger.info("Catalog loaded: vehicles=%d, rentals=%d", len(self.vehicles), len(self.rentals))

    # --------------- Vehicles ---------------
    def add_vehicle(self, vehicle: Vehicle) -> Outcome:
        def body(events):
            vid = str(vehicle.vehicle_id or "").strip()
            if not vid:
                raise ValidationError("Vehicle id is required")
            try:
                vehicle.base_price = float(vehicle.base_price)
                vehicle.insurance_rate = float(vehicle.insurance_rate or 0)
            except (TypeError, ValueError):
                raise ValidationError("Base price and insurance rate must be numbers") from None
            if vehicle.base_price < 0:
                raise ValidationError("Base price cannot be negative")
            if vehicle.insurance_rate < 0:
                raise ValidationError("Insurance rate cannot be negative")
            tiers = {}
            for threshold, ratio in (vehicle.long_term_discounts or {}).items():
                try:
                    days, cut = int(threshold), float(ratio)
                except (TypeError, ValueError):
                    raise ValidationError(f"Invalid discount tier {threshold!r}: {ratio!r}") from None
                if days <= 0 or not 0 <= cut <= 1:
                    raise ValidationError(f"Invalid discount tier {threshold}: {ratio}")
                if days in tiers:
                    raise ValidationError(f"Duplicate discount threshold {days}")
                tiers[days] = cut
            if vehicle.status not in VehicleStatus.ALL:
                raise ValidationError(f"Unknown vehicle status {vehicle.status!r}")
            with self._locks.hold(f"vehicle:{vid}"):
                if vid in self.vehicles:
                    raise ValidationError(f"Vehicle {vid} already exists")
                vehicle.vehicle_id = vid
                vehicle.long_term_discounts = tiers
                if vehicle.has_critical_issue() and vehicle.status == VehicleStatus.AVAILABLE:
                    vehicle.status = VehicleStatus.UNDER_MAINTENANCE
                self.vehicles[vid] = vehicle
            events.append(VehicleChanged(vehicle))
            return vehicle

        return self._run("add_vehicle", body)

    def get_vehicle(self, vehicle_id) -> Optional[Vehicle]:
        return self.vehicles.get(str(vehicle_id))

    def get_rental(self, rental_id) -> Optional[Rental]:
        return self.rentals.get(str(rental_id))

    def set_vehicle_status(self, vehicle_id, status: str) -> Outcome:
        """Manual hold/release by staff. A vehicle with a critical issue cannot be made available."""

        def body(events):
            vehicle = self._vehicle(vehicle_id)
            if status not in VehicleStatus.ALL:
                raise ValidationError(f"Unknown vehicle status {status!r}")
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                if status == VehicleStatus.AVAILABLE:
                    if vehicle.has_critical_issue():
                        raise ValidationError(
                            f"Vehicle {vehicle.vehicle_id} has an unresolved critical issue")
                    vehicle.status = self.engine.settled_status(vehicle, release_hold=True)
                else:
                    vehicle.status = status
            events.append(VehicleChanged(vehicle))
            return vehicle

        return self._run("set_vehicle_status", body)

    def available_vehicles(self) -> list[Vehicle]:
        """Vehicles open for new bookings: available or reserved, and never with a critical issue."""
        return [
            v for v in self.vehicles.values()
            if v.status in (VehicleStatus.AVAILABLE, VehicleStatus.RESERVED) and not v.has_critical_issue()
        ]

    def unavailable_periods(self, vehicle_id) -> Outcome:
        return self._run("unavailable_periods",
                         lambda events: self.engine.unavailable_periods(self._vehicle(vehicle_id)))

    def check_conflict(self, vehicle_id, start, end, username: Optional[str] = None) -> Outcome:
        """
        Conflict query. ``value`` is None when the range is free, otherwise a
        description of what blocks it.
        """

        def body(events):
            vehicle = self._vehicle(vehicle_id)
            d1, d2 = as_date(start), as_date(end)
            check_range(d1, d2)
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                ok, description = self.engine.can_book(vehicle, d1, d2, username)
            return None if ok else description

        return self._run("check_conflict", body)

    # --------------- Rentals ---------------
    def create_rental(self, customer: Customer, vehicle_id, start, end,
                      insurance: bool = False, username: Optional[str] = None) -> Outcome:
        def body(events):
            vehicle = self._vehicle(vehicle_id)
            d1, d2 = as_date(start), as_date(end)
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                return self.lifecycle.create(vehicle, customer, d1, d2, insurance,
                                             self._renter(customer, username), events)

        return self._run("create_rental", body)

    def create_offline_rental(self, customer: Customer, vehicle_id, start, end,
                              insurance: bool = False, username: Optional[str] = None) -> Outcome:
        """Walk-in booking: the rental starts ACTIVE with its ticket already issued."""

        def body(events):
            vehicle = self._vehicle(vehicle_id)
            d1, d2 = as_date(start), as_date(end)
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                return self.lifecycle.create_offline(vehicle, customer, d1, d2, insurance,
                                                     self._renter(customer, username), events)

        return self._run("create_offline_rental", body)

    def approve_rental(self, rental_id) -> Outcome:
        return self._on_rental(rental_id, "approve_rental", self.lifecycle.approve)

    def cancel_rental(self, rental_id, reason: Optional[str] = None) -> Outcome:
        return self._on_rental(
            rental_id, "cancel_rental",
            lambda rental, vehicle, events: self.lifecycle.cancel(rental, vehicle, reason, events) or rental,
        )

    def return_vehicle(self, rental_id, damage_descriptions: Iterable[str] = ()) -> Outcome:
        return self._on_rental(
            rental_id, "return_vehicle",
            lambda rental, vehicle, events: self.lifecycle.return_(rental, vehicle, damage_descriptions, events),
        )

    def extend_rental(self, rental_id, new_end, insurance: Optional[bool] = None) -> Outcome:
        def fn(rental, vehicle, events):
            keep = rental.insurance_selected if insurance is None else insurance
            return self.lifecycle.extend(rental, vehicle, as_date(new_end), keep, events)

        return self._on_rental(rental_id, "extend_rental", fn)

    def validate_ticket(self, ticket_id: str, presented_name: str) -> Outcome:
        def body(events):
            ticket = self.tickets.get(ticket_id)
            if ticket is None:
                raise NotFoundError(f"Error: ticket '{ticket_id}' not found")
            ok, message = self.tickets.validate(ticket_id, presented_name)
            if not ok:
                raise ValidationError(message)
            events.append(TicketUsed(ticket))
            return ticket

        return self._run("validate_ticket", body)

    def pending_rentals(self) -> list[Rental]:
        return [r for r in self.rentals.values() if r.status == RentalStatus.PENDING]

    def active_rentals(self) -> list[Rental]:
        return [r for r in self.rentals.values() if r.status == RentalStatus.ACTIVE]

    def rentals_for_user(self, username: str) -> list[Rental]:
        out = [r for r in self.rentals.values() if r.username == username]
        out.sort(key=lambda r: r.start_date, reverse=True)
        return out

    # --------------- Maintenance ---------------
    def add_maintenance_issue(self, vehicle_id, log_type: str, description: str,
                              reported_by: str, severity: int = DEFAULT_DAMAGE_SEVERITY) -> Outcome:
        def body(events):
            vehicle = self._vehicle(vehicle_id)
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                issue = self.maintenance.file_issue(vehicle, log_type, description, reported_by,
                                                    severity, events)
            events.append(VehicleChanged(vehicle))
            return issue

        return self._run("add_maintenance_issue", body)

    def resolve_maintenance_issue(self, vehicle_id, issue_id: str, cost: float = 0.0,
                                  resolved_by: Optional[str] = None) -> Outcome:
        def body(events):
            vehicle = self._vehicle(vehicle_id)
            with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                return self.maintenance.resolve_issue(vehicle.vehicle_id, issue_id, cost,
                                                      resolved_by, events)

        return self._run("resolve_maintenance_issue", body)

    # --------------- Housekeeping ---------------
    def send_reminders(self) -> Outcome:
        """Due-soon and overdue notices for active rentals, each sent once."""

        def body(events):
            for rental in self.active_rentals():
                with self._locks.hold(f"rental:{rental.rental_id}"):
                    self.lifecycle.remind(rental, events)
            return len(events)

        return self._run("send_reminders", body)

    def sync_vehicle_statuses(self) -> Outcome:
        """
        Rebuild vehicle statuses from the schedules and maintenance logs.
        Manual holds are kept. Returns the ids of vehicles that changed.
        """

        def body(events):
            changed = []
            for vehicle in list(self.vehicles.values()):
                with self._locks.hold(f"vehicle:{vehicle.vehicle_id}"):
                    status = self.engine.settled_status(vehicle)
                    if status != vehicle.status:
                        vehicle.status = status
                        changed.append(vehicle.vehicle_id)
                        events.append(VehicleChanged(vehicle))
            return changed

        return self._run("sync_vehicle_statuses", body)
