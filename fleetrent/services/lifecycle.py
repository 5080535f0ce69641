"""
Rental state machine.

    PENDING --approve--> ACTIVE --return--> RETURNED
       |                   |
       +--cancel--> CANCELLED   (ACTIVE may extend its end date in place)

Transitions mutate the rental, its vehicle's schedule and the vehicle status,
and append domain events to the list they are given. They never persist or
notify; the catalog does that once its locks are released. Every failure is
raised as one of the typed errors in ``fleetrent.exceptions``.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, MutableMapping, Optional

from fleetrent.exceptions import ConflictError, InvalidStateError, TicketNotUsedError, ValidationError
from fleetrent.models.rental import Customer, Rental
from fleetrent.models.ticket import Ticket
from fleetrent.models.vehicle import Vehicle
from fleetrent.services.availability import AvailabilityEngine
from fleetrent.services.common import check_range
from fleetrent.services.events import (
    DomainEvent,
    RentalApproved,
    RentalCreated,
    RentalDueSoon,
    RentalExtended,
    RentalOverdue,
    RentalRejected,
    RentalReturned,
)
from fleetrent.services.maintenance import MaintenanceDesk
from fleetrent.services.pricing import FeeCalculator
from fleetrent.services.tickets import TicketGate
from fleetrent.utils.constants import DEFAULT_DAMAGE_SEVERITY, MaintenanceType, RentalStatus

logger = logging.getLogger(__name__)


class RentalLifecycle:

    def __init__(
            self,
            rentals: MutableMapping[str, Rental],
            engine: AvailabilityEngine,
            pricing: FeeCalculator,
            tickets: TicketGate,
            maintenance: MaintenanceDesk,
            id_factory: Callable[[], str],
            today: Callable[[], date],
            now: Callable[[], datetime],
    ):
        self.rentals = rentals
        self.engine = engine
        self.pricing = pricing
        self.tickets = tickets
        self.maintenance = maintenance
        self._new_id = id_factory
        self._today = today
        self._now = now

    # ------------------------- helpers -------------------------
    def _require_free(self, vehicle: Vehicle, start: date, end: date,
                      user: Optional[str], extending: Optional[str] = None) -> None:
        reason = self.engine.blocked_reason(vehicle)
        if reason:
            raise ConflictError(reason)
        hit = self.engine.find_conflict(vehicle, start, end, user, extending=extending)
        if hit:
            booking, window = hit
            owner = self.rentals.get(booking.rental_id)
            raise ConflictError(
                self.engine.describe(booking, window),
                rental_id=booking.rental_id,
                renter=owner.username if owner else booking.renter,
                window=window,
            )

    @staticmethod
    def _require_status(rental: Rental, expected: str, action: str) -> None:
        if rental.status != expected:
            raise InvalidStateError(
                f"Cannot {action} rental {rental.rental_id}: status is {rental.status}, expected {expected}"
            )

    def settle(self, vehicle: Vehicle, *, release_hold: bool = False) -> None:
        vehicle.status = self.engine.settled_status(vehicle, release_hold=release_hold)

    # ------------------------- transitions -------------------------
    def create(self, vehicle: Vehicle, customer: Customer, start: date, end: date,
               insurance: bool, username: str, events: list[DomainEvent]) -> Rental:
        """
        Book ``[start, end]`` as a PENDING rental. The caller holds the vehicle
        lock, so the availability check and the reservation are one unit.
        """
        if not username:
            raise ValidationError("Username is required")
        if customer is None or not (customer.name or "").strip():
            raise ValidationError("Customer name is required")
        check_range(start, end)
        self._require_free(vehicle, start, end, username)

        fee = self.pricing.estimate(vehicle, start, end, insurance)
        rental = Rental(
            rental_id=self._new_id(),
            customer=customer,
            vehicle_id=vehicle.vehicle_id,
            start_date=start,
            end_date=end,
            username=username,
            total_fee=fee,
            insurance_selected=bool(insurance),
            created_at=self._now(),
        )
        self.rentals[rental.rental_id] = rental
        self.engine.reserve(vehicle, start, end, rental.rental_id, username)
        self.settle(vehicle)
        events.append(RentalCreated(rental))
        logger.info("Rental %s created for %s on vehicle %s (%s to %s, %.2f)",
                    rental.rental_id, username, vehicle.vehicle_id, start, end, fee)
        return rental

    def approve(self, rental: Rental, vehicle: Vehicle, events: list[DomainEvent]) -> Ticket:
        self._require_status(rental, RentalStatus.PENDING, "approve")
        # The ticket exists before anyone can see the rental as ACTIVE.
        ticket = self.tickets.issue(rental, vehicle)
        rental.status = RentalStatus.ACTIVE
        self.settle(vehicle)
        events.append(RentalApproved(rental, ticket))
        logger.info("Rental %s approved, ticket %s", rental.rental_id, ticket.ticket_id)
        return ticket

    def create_offline(self, vehicle: Vehicle, customer: Customer, start: date, end: date,
                       insurance: bool, username: str, events: list[DomainEvent]) -> tuple[Rental, Ticket]:
        """Counter booking: created and approved in one step."""
        rental = self.create(vehicle, customer, start, end, insurance, username, events)
        ticket = self.approve(rental, vehicle, events)
        return rental, ticket

    def cancel(self, rental: Rental, vehicle: Vehicle, reason: Optional[str],
               events: list[DomainEvent]) -> None:
        """Only a PENDING rental can be cancelled; an ACTIVE one must be returned."""
        self._require_status(rental, RentalStatus.PENDING, "cancel")
        reason = (reason or "").strip() or "No reason provided"
        rental.status = RentalStatus.CANCELLED
        rental.cancel_reason = reason
        self.engine.release(vehicle, rental.start_date, rental.end_date, rental.rental_id)
        self.settle(vehicle)
        events.append(RentalRejected(rental, reason))
        logger.info("Rental %s cancelled: %s", rental.rental_id, reason)

    def return_(self, rental: Rental, vehicle: Vehicle, damage_descriptions: Iterable[str],
                events: list[DomainEvent]) -> Rental:
        self._require_status(rental, RentalStatus.ACTIVE, "return")
        ticket = self.tickets.get_by_rental_id(rental.rental_id)
        if ticket is None or not ticket.used:
            raise TicketNotUsedError(
                f"Rental {rental.rental_id} cannot be returned: its pickup ticket was never validated"
            )
        damages = [d.strip() for d in (damage_descriptions or ()) if d and d.strip()]

        today = self._today()
        rental.actual_fee = self.pricing.actual_fee(rental, vehicle, today)
        rental.returned_on = today
        rental.status = RentalStatus.RETURNED
        self.engine.release(vehicle, rental.start_date, rental.end_date, rental.rental_id)

        filed = 0
        for description in damages:
            if self.maintenance.add_issue(vehicle.vehicle_id, MaintenanceType.DAMAGE_REPORT, description,
                                          rental.customer.name, DEFAULT_DAMAGE_SEVERITY, events):
                filed += 1
            else:
                logger.warning("Damage report for vehicle %s was not recorded: %s",
                               vehicle.vehicle_id, description)
        if filed:
            logger.info("Damage reports filed for vehicle %s: %d issue(s)", vehicle.vehicle_id, filed)

        # Critical issues filed above (or earlier) decide between maintenance and the schedule.
        self.settle(vehicle, release_hold=True)
        events.append(RentalReturned(rental))
        logger.info("Rental %s returned on %s, actual fee %.2f",
                    rental.rental_id, today, rental.actual_fee)
        return rental

    def extend(self, rental: Rental, vehicle: Vehicle, new_end: date, insurance: bool,
               events: list[DomainEvent]) -> Ticket:
        """
        Move an ACTIVE rental's end date. The renter's own booking is merged
        with the new range; other renters' bookings still block it.
        """
        self._require_status(rental, RentalStatus.ACTIVE, "extend")
        check_range(rental.start_date, new_end)
        self._require_free(vehicle, rental.start_date, new_end, rental.username, extending=rental.rental_id)

        self.engine.release(vehicle, rental.start_date, rental.end_date, rental.rental_id)
        self.engine.reserve(vehicle, rental.start_date, new_end, rental.rental_id, rental.username)

        rental.end_date = new_end
        rental.insurance_selected = bool(insurance)
        rental.total_fee = self.pricing.estimate(vehicle, rental.start_date, new_end, rental.insurance_selected)
        rental.due_soon_sent = False
        rental.overdue_sent = False

        ticket = self.tickets.issue(rental, vehicle)
        events.append(RentalExtended(rental, ticket))
        logger.info("Rental %s extended to %s, new fee %.2f", rental.rental_id, new_end, rental.total_fee)
        return ticket

    def remind(self, rental: Rental, events: list[DomainEvent]) -> None:
        """One due-soon notice the day before the end date, one overdue notice after it."""
        if rental.status != RentalStatus.ACTIVE:
            return
        today = self._today()
        if rental.end_date == today + timedelta(days=1) and not rental.due_soon_sent:
            rental.due_soon_sent = True
            events.append(RentalDueSoon(rental))
        if rental.end_date < today and not rental.overdue_sent:
            rental.overdue_sent = True
            events.append(RentalOverdue(rental))
