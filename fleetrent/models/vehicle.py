from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from fleetrent.utils.constants import (
    CRITICAL_SEVERITY,
    MAX_SEVERITY,
    MIN_SEVERITY,
    MaintenanceStatus,
    VehicleStatus,
)


@dataclass(frozen=True)
class Booking:
    """
    Inclusive reservation range on a vehicle's schedule, tied 1:1 to a
    pending or active rental.
    """
    start: date
    end: date
    rental_id: str
    renter: str

    def as_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "rental_id": self.rental_id,
            "renter": self.renter,
        }


@dataclass
class MaintenanceIssue:
    issue_id: str
    vehicle_id: str
    log_type: str
    description: str
    reported_by: str
    severity: int = 3
    status: str = MaintenanceStatus.REPORTED
    cost: float = 0.0
    resolved_by: Optional[str] = None
    reported_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    def __post_init__(self):
        self.severity = max(MIN_SEVERITY, min(MAX_SEVERITY, int(self.severity)))

    @property
    def is_unresolved(self) -> bool:
        return self.status != MaintenanceStatus.RESOLVED

    @property
    def is_critical(self) -> bool:
        return self.is_unresolved and self.severity >= CRITICAL_SEVERITY

    def resolve(self, cost: float, resolved_by: Optional[str], when: datetime) -> None:
        self.status = MaintenanceStatus.RESOLVED
        self.cost = float(cost)
        self.resolved_by = resolved_by
        if self.resolved_at is None:
            self.resolved_at = when

    def as_dict(self) -> dict:
        return {
            "issue_id": self.issue_id,
            "vehicle_id": self.vehicle_id,
            "log_type": self.log_type,
            "description": self.description,
            "reported_by": self.reported_by,
            "severity": self.severity,
            "status": self.status,
            "cost": self.cost,
            "resolved_by": self.resolved_by,
            "reported_at": self.reported_at,
            "resolved_at": self.resolved_at,
        }


@dataclass
class Vehicle:
    """
    A rentable vehicle. Pricing is a per-day base price, an insurance rate
    (fraction of the discounted fee) and long-term discount tiers keyed by the
    minimum number of days that unlocks them.
    """
    vehicle_id: str
    brand: str
    model: str
    base_price: float
    insurance_rate: float = 0.0
    long_term_discounts: dict[int, float] = field(default_factory=dict)
    plate_no: str = ""
    vehicle_type: str = "car"
    status: str = VehicleStatus.AVAILABLE
    bookings: list[Booking] = field(default_factory=list)
    maintenance_logs: list[MaintenanceIssue] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}".strip() or self.vehicle_id

    def has_critical_issue(self) -> bool:
        return any(log.is_critical for log in self.maintenance_logs)

    def unresolved_issues(self) -> list[MaintenanceIssue]:
        return [log for log in self.maintenance_logs if log.is_unresolved]

    def find_issue(self, issue_id: str) -> Optional[MaintenanceIssue]:
        for log in self.maintenance_logs:
            if log.issue_id == issue_id:
                return log
        return None

    def total_maintenance_cost(self) -> float:
        return round(sum(log.cost for log in self.maintenance_logs), 2)

    def as_dict(self) -> dict:
        return {
            "vehicle_id": self.vehicle_id,
            "plate_no": self.plate_no,
            "brand": self.brand,
            "model": self.model,
            "type": self.vehicle_type,
            "base_price": self.base_price,
            "insurance_rate": self.insurance_rate,
            "long_term_discounts": {str(k): v for k, v in sorted(self.long_term_discounts.items())},
            "status": self.status,
            "bookings": [b.as_dict() for b in self.bookings],
            "critical_issue": self.has_critical_issue(),
        }
