"""
Domain events emitted by lifecycle transitions, and the dispatcher that turns
them into side effects (write-through save, notifications).

Transitions only collect events; the catalog dispatches them after its locks
are released, so no I/O happens inside a critical section.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from fleetrent.models.rental import Rental
from fleetrent.models.ticket import Ticket
from fleetrent.models.vehicle import MaintenanceIssue, Vehicle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    pass


@dataclass(frozen=True)
class RentalCreated(DomainEvent):
    rental: Rental


@dataclass(frozen=True)
class RentalApproved(DomainEvent):
    rental: Rental
    ticket: Ticket


@dataclass(frozen=True)
class RentalRejected(DomainEvent):
    rental: Rental
    reason: str


@dataclass(frozen=True)
class RentalReturned(DomainEvent):
    rental: Rental


@dataclass(frozen=True)
class RentalExtended(DomainEvent):
    rental: Rental
    ticket: Ticket


@dataclass(frozen=True)
class TicketUsed(DomainEvent):
    ticket: Ticket


@dataclass(frozen=True)
class CriticalMaintenance(DomainEvent):
    vehicle: Vehicle
    issue: MaintenanceIssue


@dataclass(frozen=True)
class MaintenanceResolved(DomainEvent):
    vehicle: Vehicle
    issue: MaintenanceIssue


@dataclass(frozen=True)
class RentalDueSoon(DomainEvent):
    rental: Rental


@dataclass(frozen=True)
class RentalOverdue(DomainEvent):
    rental: Rental


@dataclass(frozen=True)
class VehicleChanged(DomainEvent):
    vehicle: Vehicle


class EventDispatcher:
    """
    Performs persistence and notification for a batch of events.
    Failures are logged and swallowed: a committed transition never rolls back
    because a save or a notice went wrong.
    """

    def __init__(self, repository, notifier, snapshot: Optional[Callable[[], tuple]] = None):
        self.repository = repository
        self.notifier = notifier
        # snapshot() -> (vehicles, rentals, tickets)
        self.snapshot = snapshot

    def dispatch(self, events: Iterable[DomainEvent]) -> None:
        events = list(events)
        if not events:
            return
        self._save()
        for event in events:
            self._notify(event)

    def _save(self) -> None:
        if self.repository is None or self.snapshot is None:
            return
        try:
            vehicles, rentals, tickets = self.snapshot()
            self.repository.save_vehicles(vehicles)
            self.repository.save_rentals(rentals)
            self.repository.save_tickets(tickets)
        except Exception:
            logger.exception("Saving catalog failed; in-memory state is kept")

    def _notify(self, event: DomainEvent) -> None:
        if self.notifier is None:
            return
        try:
            if isinstance(event, RentalApproved):
                self.notifier.notify_approval(event.rental, event.ticket)
            elif isinstance(event, RentalExtended):
                self.notifier.notify_approval(event.rental, event.ticket)
            elif isinstance(event, RentalRejected):
                self.notifier.notify_rejection(event.rental, event.reason)
            elif isinstance(event, RentalReturned):
                self.notifier.notify_return(event.rental)
            elif isinstance(event, CriticalMaintenance):
                self.notifier.notify_critical_maintenance(event.vehicle, event.issue)
            elif isinstance(event, RentalDueSoon):
                self.notifier.notify_due_soon(event.rental)
            elif isinstance(event, RentalOverdue):
                self.notifier.notify_overdue(event.rental)
        except Exception:
            logger.exception("Notification for %s failed", type(event).__name__)
