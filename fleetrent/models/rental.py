from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from fleetrent.utils.constants import RentalStatus


@dataclass
class Customer:
    name: str
    contact: str = ""
    email: str = ""

    def as_dict(self) -> dict:
        return {"name": self.name, "contact": self.contact, "email": self.email}


@dataclass
class Rental:
    """
    One rental of one vehicle by one customer.

    ``total_fee`` is the estimate taken at booking (and re-taken on extension);
    ``actual_fee`` stays 0 until the vehicle comes back.
    """
    rental_id: str
    customer: Customer
    vehicle_id: str
    start_date: date
    end_date: date
    username: str
    total_fee: float = 0.0
    insurance_selected: bool = False
    status: str = RentalStatus.PENDING
    actual_fee: float = 0.0
    due_soon_sent: bool = False
    overdue_sent: bool = False
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    returned_on: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.status in RentalStatus.OPEN

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def as_dict(self) -> dict:
        return {
            "rental_id": self.rental_id,
            "customer": self.customer.as_dict(),
            "vehicle_id": self.vehicle_id,
            "username": self.username,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "status": self.status,
            "total_fee": self.total_fee,
            "actual_fee": self.actual_fee,
            "insurance_selected": self.insurance_selected,
            "due_soon_sent": self.due_soon_sent,
            "overdue_sent": self.overdue_sent,
            "cancel_reason": self.cancel_reason,
            "created_at": self.created_at,
            "returned_on": self.returned_on.isoformat() if self.returned_on else None,
        }
