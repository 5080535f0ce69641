from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from fleetrent.utils.constants import PICKUP_INSTRUCTIONS, PICKUP_LOCATION


@dataclass
class Ticket:
    """
    One-time pickup credential issued when a rental is approved.
    Fields other than ``used`` are a snapshot taken at issuance; an extension
    replaces the whole ticket rather than editing it.
    """
    ticket_id: str
    rental_id: str
    customer_name: str
    customer_contact: str
    vehicle_info: str
    plate_no: str
    start_date: date
    end_date: date
    total_fee: float
    insurance_included: bool
    generated_at: Optional[datetime] = None
    pickup_location: str = PICKUP_LOCATION
    instructions: str = PICKUP_INSTRUCTIONS
    used: bool = False

    def mark_used(self) -> None:
        self.used = True

    def as_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "rental_id": self.rental_id,
            "customer_name": self.customer_name,
            "customer_contact": self.customer_contact,
            "vehicle_info": self.vehicle_info,
            "plate_no": self.plate_no,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_fee": self.total_fee,
            "insurance_included": self.insurance_included,
            "generated_at": self.generated_at,
            "pickup_location": self.pickup_location,
            "instructions": self.instructions,
            "used": self.used,
        }
