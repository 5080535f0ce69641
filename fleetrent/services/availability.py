"""Vehicle schedule checks: can a range be booked, and who is in the way."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Mapping, Optional

from fleetrent.models.rental import Rental
from fleetrent.models.vehicle import Booking, Vehicle
from fleetrent.services.common import adjacent, check_range, overlap
from fleetrent.utils.constants import BUFFER_DAYS, RentalStatus, VehicleStatus


class AvailabilityEngine:
    """
    Decides whether a vehicle can take a new date range.

    ``rentals`` is the catalog's rental-id index; it tells the engine which
    bookings still belong to a pending or active rental. The engine never
    locks anything itself: callers run ``can_book`` and ``reserve`` inside the
    vehicle's lock.
    """

    def __init__(self, rentals: Mapping[str, Rental], buffer_days: int = BUFFER_DAYS):
        self.rentals = rentals
        self.buffer_days = buffer_days

    # --------------- Queries ---------------
    def buffered_window(self, booking: Booking) -> tuple[date, date]:
        pad = timedelta(days=self.buffer_days)
        return booking.start - pad, booking.end + pad

    def _owner(self, booking: Booking) -> Optional[Rental]:
        return self.rentals.get(booking.rental_id)

    def _is_live(self, booking: Booking) -> bool:
        r = self._owner(booking)
        # A booking with no rental record is still someone's slot.
        return r is None or r.is_open

    def is_extension(self, vehicle: Vehicle, start: date, end: date, user: Optional[str]) -> bool:
        """
        True when ``user`` already holds a live booking on the vehicle that the
        new range touches or overlaps.
        """
        if not user:
            return False
        for b in vehicle.bookings:
            if b.renter != user or not self._is_live(b):
                continue
            if overlap(start, end, b.start, b.end) or adjacent(start, end, b.start, b.end):
                return True
        return False

    def blocked_reason(self, vehicle: Vehicle) -> Optional[str]:
        if vehicle.status in VehicleStatus.BLOCKED:
            return f"Vehicle {vehicle.vehicle_id} is {vehicle.status.replace('_', ' ')}"
        if vehicle.has_critical_issue():
            return f"Vehicle {vehicle.vehicle_id} has an unresolved critical maintenance issue"
        return None

    def find_conflict(
            self,
            vehicle: Vehicle,
            start: date,
            end: date,
            requesting_user: Optional[str] = None,
            *,
            extending: Optional[str] = None,
    ) -> Optional[tuple[Booking, tuple[date, date]]]:
        """
        Return the first booking (and the window it was checked against) that
        blocks the range, or None.

        Ordinary requests are checked against buffered windows. An extension
        is merged with the requesting user's own bookings and only clashes
        with another renter's booked range itself, without the buffer.
        """
        check_range(start, end)
        extension = extending is not None or self.is_extension(vehicle, start, end, requesting_user)
        for b in vehicle.bookings:
            if b.rental_id == extending or not self._is_live(b):
                continue
            if extension and requesting_user and b.renter == requesting_user:
                continue
            window = (b.start, b.end) if extension else self.buffered_window(b)
            if overlap(start, end, window[0], window[1]):
                return b, window
        return None

    def describe(self, booking: Booking, window: tuple[date, date]) -> str:
        r = self._owner(booking)
        status = (r.status if r else RentalStatus.PENDING).upper()
        renter = r.customer.name if r else booking.renter
        text = (
            f"Conflict with {status} rental by {renter} (ID: {booking.rental_id}) "
            f"from {booking.start} to {booking.end}"
        )
        if window != (booking.start, booking.end):
            text += f" (with {self.buffer_days}-day buffer: {window[0]} to {window[1]})"
        return text

    def can_book(
            self,
            vehicle: Vehicle,
            start: date,
            end: date,
            requesting_user: Optional[str] = None,
            *,
            extending: Optional[str] = None,
    ) -> tuple[bool, Optional[str]]:
        """
        Returns:
            (ok: bool, conflict_description: Optional[str])
        """
        reason = self.blocked_reason(vehicle)
        if reason:
            return False, reason
        hit = self.find_conflict(vehicle, start, end, requesting_user, extending=extending)
        if hit:
            return False, self.describe(*hit)
        return True, None

    def settled_status(self, vehicle: Vehicle, *, release_hold: bool = False) -> str:
        """
        Status implied by the schedule and the maintenance log.
        A manual hold (out of service, under maintenance) is kept unless
        ``release_hold`` is set; a critical issue always means maintenance.
        """
        if vehicle.status == VehicleStatus.OUT_OF_SERVICE and not release_hold:
            return VehicleStatus.OUT_OF_SERVICE
        if vehicle.has_critical_issue():
            return VehicleStatus.UNDER_MAINTENANCE
        if vehicle.status == VehicleStatus.UNDER_MAINTENANCE and not release_hold:
            return VehicleStatus.UNDER_MAINTENANCE
        live = [self._owner(b) for b in vehicle.bookings if self._is_live(b)]
        if any(r is not None and r.status == RentalStatus.ACTIVE for r in live):
            return VehicleStatus.RENTED
        if live:
            return VehicleStatus.RESERVED
        return VehicleStatus.AVAILABLE

    def unavailable_periods(self, vehicle: Vehicle) -> list[str]:
        out = []
        for b in sorted(vehicle.bookings, key=lambda x: x.start):
            if not self._is_live(b):
                continue
            s, e = self.buffered_window(b)
            out.append(f"{s} to {e} (includes {self.buffer_days}-day buffer)")
        return out

    # --------------- Commands ---------------
    @staticmethod
    def reserve(vehicle: Vehicle, start: date, end: date, rental_id: str, renter: str) -> Booking:
        """Append a booking. The caller has already run ``can_book`` under the vehicle lock."""
        booking = Booking(start=start, end=end, rental_id=rental_id, renter=renter)
        vehicle.bookings.append(booking)
        vehicle.bookings.sort(key=lambda b: (b.start, b.end))
        return booking

    @staticmethod
    def release(vehicle: Vehicle, start: date, end: date, rental_id: Optional[str] = None) -> bool:
        """Remove the booking matching the range; a second call is a no-op."""
        for i, b in enumerate(vehicle.bookings):
            if b.start == start and b.end == end and (rental_id is None or b.rental_id == rental_id):
                del vehicle.bookings[i]
                return True
        return False
