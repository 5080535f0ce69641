"""Pickup tickets: issue on approval, validate once at the counter."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from fleetrent.models.rental import Rental
from fleetrent.models.ticket import Ticket
from fleetrent.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


def _norm_name(s: Optional[str]) -> str:
    """Case-insensitive, whitespace-trimmed customer name."""
    return (s or "").strip().casefold()


class TicketGate:
    """
    Owns every ticket, keyed by ticket id and by rental id. A rental has at
    most one current ticket; reissuing replaces it.
    """

    def __init__(self, id_factory: Callable[[], str], today: Callable[[], date],
                 now: Callable[[], datetime], pickup_location: Optional[str] = None):
        self._new_id = id_factory
        self._today = today
        self._now = now
        self.pickup_location = pickup_location
        self._by_id: dict[str, Ticket] = {}
        self._by_rental: dict[str, Ticket] = {}
        self._lock = threading.RLock()

    def issue(self, rental: Rental, vehicle: Vehicle) -> Ticket:
        ticket = Ticket(
            ticket_id=self._new_id(),
            rental_id=rental.rental_id,
            customer_name=rental.customer.name,
            customer_contact=rental.customer.contact,
            vehicle_info=vehicle.label,
            plate_no=vehicle.plate_no,
            start_date=rental.start_date,
            end_date=rental.end_date,
            total_fee=rental.total_fee,
            insurance_included=rental.insurance_selected,
            generated_at=self._now(),
        )
        if self.pickup_location:
            ticket.pickup_location = self.pickup_location
        with self._lock:
            old = self._by_rental.get(rental.rental_id)
            if old is not None:
                self._by_id.pop(old.ticket_id, None)
                logger.info("Ticket %s for rental %s replaced by %s",
                            old.ticket_id, rental.rental_id, ticket.ticket_id)
            self._by_id[ticket.ticket_id] = ticket
            self._by_rental[rental.rental_id] = ticket
        logger.info("Ticket generated: %s", ticket.ticket_id)
        return ticket

    def validate(self, ticket_id: str, presented_name: str) -> tuple[bool, str]:
        """
        Check a ticket at pickup and consume it.

        Returns:
            (ok: bool, message: str)
        """
        with self._lock:
            ticket = self._by_id.get(ticket_id)
            if ticket is None:
                return False, "Ticket not found"
            if ticket.used:
                return False, "Ticket has already been used"
            if _norm_name(ticket.customer_name) != _norm_name(presented_name):
                return False, "Ticket does not belong to this customer"
            if self._today() < ticket.start_date:
                return False, f"Pickup is not possible before {ticket.start_date}"
            ticket.mark_used()
        logger.info("Ticket %s validated and marked as used", ticket_id)
        return True, "Ticket validated"

    def get(self, ticket_id: str) -> Optional[Ticket]:
        return self._by_id.get(ticket_id)

    def get_by_rental_id(self, rental_id: str) -> Optional[Ticket]:
        return self._by_rental.get(rental_id)

    def tickets_for_customer(self, customer_name: str, valid_only: bool = False) -> list[Ticket]:
        name = _norm_name(customer_name)
        out = [t for t in self._by_id.values() if _norm_name(t.customer_name) == name]
        if valid_only:
            out = [t for t in out if not t.used]
        return out

    def all(self) -> list[Ticket]:
        return list(self._by_id.values())

    def stats(self) -> dict:
        tickets = self.all()
        used = sum(1 for t in tickets if t.used)
        return {"total": len(tickets), "used": used, "valid": len(tickets) - used}

    def load(self, tickets: Iterable[Ticket]) -> None:
        with self._lock:
            self._by_id.clear()
            self._by_rental.clear()
            for t in tickets:
                self._by_id[t.ticket_id] = t
                self._by_rental[t.rental_id] = t
