"""Maintenance log per vehicle; critical issues take a vehicle off the road."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Mapping, Optional

from fleetrent.exceptions import NotFoundError, ValidationError
from fleetrent.models.vehicle import MaintenanceIssue, Vehicle
from fleetrent.services.availability import AvailabilityEngine
from fleetrent.services.events import CriticalMaintenance, DomainEvent, MaintenanceResolved
from fleetrent.utils.constants import (
    DEFAULT_DAMAGE_SEVERITY,
    MAX_SEVERITY,
    MIN_SEVERITY,
    MaintenanceType,
    VehicleStatus,
)

logger = logging.getLogger(__name__)


class MaintenanceDesk:

    def __init__(self, vehicles: Mapping[str, Vehicle], engine: AvailabilityEngine,
                 id_factory: Callable[[], str], now: Callable[[], datetime]):
        self.vehicles = vehicles
        self.engine = engine
        self._new_id = id_factory
        self._now = now

    def file_issue(self, vehicle: Vehicle, log_type: str, description: str,
                   reported_by: str, severity: int = DEFAULT_DAMAGE_SEVERITY,
                   events: Optional[list[DomainEvent]] = None) -> MaintenanceIssue:
        """Record an issue on ``vehicle``; the caller holds the vehicle lock."""
        if log_type not in MaintenanceType.ALL:
            raise ValidationError(f"Unknown maintenance type {log_type!r}")
        if not (description or "").strip():
            raise ValidationError("Maintenance description is required")
        try:
            severity = int(severity)
        except (TypeError, ValueError):
            raise ValidationError(f"Severity must be an integer, got {severity!r}") from None
        if not MIN_SEVERITY <= severity <= MAX_SEVERITY:
            raise ValidationError(f"Severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}")

        issue = MaintenanceIssue(
            issue_id=self._new_id(),
            vehicle_id=vehicle.vehicle_id,
            log_type=log_type,
            description=description.strip(),
            reported_by=reported_by,
            severity=severity,
            reported_at=self._now(),
        )
        vehicle.maintenance_logs.append(issue)

        if issue.is_critical:
            if vehicle.status == VehicleStatus.AVAILABLE:
                vehicle.status = VehicleStatus.UNDER_MAINTENANCE
            logger.warning("Critical issue %s on vehicle %s (severity %d)",
                           issue.issue_id, vehicle.vehicle_id, severity)
            if events is not None:
                events.append(CriticalMaintenance(vehicle, issue))
        return issue

    def add_issue(self, vehicle_id: str, log_type: str, description: str,
                  reported_by: str, severity: int = DEFAULT_DAMAGE_SEVERITY,
                  events: Optional[list[DomainEvent]] = None) -> bool:
        """Maintenance contract: True when the issue was recorded."""
        vehicle = self.vehicles.get(str(vehicle_id))
        if vehicle is None:
            return False
        self.file_issue(vehicle, log_type, description, reported_by, severity, events)
        return True

    def resolve_issue(self, vehicle_id: str, issue_id: str, cost: float = 0.0,
                      resolved_by: Optional[str] = None,
                      events: Optional[list[DomainEvent]] = None) -> MaintenanceIssue:
        vehicle = self.vehicles.get(str(vehicle_id))
        if vehicle is None:
            raise NotFoundError(f"Error: vehicle with ID '{vehicle_id}' not found")
        issue = vehicle.find_issue(issue_id)
        if issue is None:
            raise NotFoundError(f"Error: maintenance issue '{issue_id}' not found on vehicle {vehicle_id}")
        try:
            cost = float(cost or 0)
        except (TypeError, ValueError):
            raise ValidationError(f"Cost must be a number, got {cost!r}") from None
        if cost < 0:
            raise ValidationError("Cost cannot be negative")

        issue.resolve(cost, resolved_by, self._now())
        if vehicle.status == VehicleStatus.UNDER_MAINTENANCE and not vehicle.has_critical_issue():
            vehicle.status = self.engine.settled_status(vehicle, release_hold=True)
        if events is not None:
            events.append(MaintenanceResolved(vehicle, issue))
        return issue

    def unresolved_issues(self) -> list[MaintenanceIssue]:
        out = []
        for v in self.vehicles.values():
            out.extend(v.unresolved_issues())
        return out

    def vehicles_needing_maintenance(self) -> list[Vehicle]:
        return [v for v in self.vehicles.values()
                if v.has_critical_issue() or v.status == VehicleStatus.UNDER_MAINTENANCE]
