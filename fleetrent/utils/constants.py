# fleetrent/utils/constants.py

"""
Global constants for statuses, maintenance rules and pickup details.
These constants are imported by both models and services.
"""

# Turnaround margin added on both sides of another renter's booking
BUFFER_DAYS = 2

# Unresolved issues at or above this severity keep a vehicle off the road
CRITICAL_SEVERITY = 4
DEFAULT_DAMAGE_SEVERITY = 3
MIN_SEVERITY = 1
MAX_SEVERITY = 5

PICKUP_LOCATION = "Main Office - CarSeek HQ"
PICKUP_INSTRUCTIONS = "Please bring valid ID and this ticket for vehicle pickup"


class RentalStatus:
    PENDING = "pending"
    ACTIVE = "active"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    ALL = (PENDING, ACTIVE, RETURNED, CANCELLED)
    OPEN = (PENDING, ACTIVE)


class VehicleStatus:
    AVAILABLE = "available"
    RESERVED = "reserved"
    RENTED = "rented"
    UNDER_MAINTENANCE = "under_maintenance"
    OUT_OF_SERVICE = "out_of_service"

    ALL = (AVAILABLE, RESERVED, RENTED, UNDER_MAINTENANCE, OUT_OF_SERVICE)
    BLOCKED = (UNDER_MAINTENANCE, OUT_OF_SERVICE)


class MaintenanceType:
    ROUTINE_MAINTENANCE = "routine_maintenance"
    REPAIR = "repair"
    DAMAGE_REPORT = "damage_report"
    CLEANING = "cleaning"
    INSPECTION = "inspection"

    ALL = (ROUTINE_MAINTENANCE, REPAIR, DAMAGE_REPORT, CLEANING, INSPECTION)


class MaintenanceStatus:
    REPORTED = "reported"
    RESOLVED = "resolved"
