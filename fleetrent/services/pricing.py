"""Rental pricing: day count, long-term discount tier, insurance surcharge."""

from datetime import date

from fleetrent.exceptions import ValidationError
from fleetrent.models.rental import Rental
from fleetrent.models.vehicle import Vehicle
from fleetrent.services.common import check_range, round2


class FeeCalculator:
    """
    fee = base_price * days * (1 - discount), then + fee * insurance_rate
    when insurance is taken. Only the single best discount tier applies.
    """

    @staticmethod
    def rental_days(start: date, end: date) -> int:
        check_range(start, end)
        days = (end - start).days + 1
        if days <= 0:
            raise ValidationError("Rental must last at least one day")
        return days

    @staticmethod
    def discount_for(vehicle: Vehicle, days: int) -> float:
        best = 0.0
        for threshold, ratio in (vehicle.long_term_discounts or {}).items():
            if days >= int(threshold) and ratio > best:
                best = float(ratio)
        return best

    def estimate(self, vehicle: Vehicle, start: date, end: date, insurance: bool) -> float:
        days = self.rental_days(start, end)
        fee = vehicle.base_price * days * (1 - self.discount_for(vehicle, days))
        if insurance:
            fee += fee * vehicle.insurance_rate
        return round2(fee)

    def actual_fee(self, rental: Rental, vehicle: Vehicle, today: date) -> float:
        """
        Late returns are billed through the return day; early returns still pay
        the agreed period.
        """
        end = max(today, rental.end_date)
        return self.estimate(vehicle, rental.start_date, end, rental.insurance_selected)
