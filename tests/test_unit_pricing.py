from datetime import date

import pytest

from conftest import make_vehicle
from fleetrent.exceptions import ValidationError
from fleetrent.models.rental import Customer, Rental
from fleetrent.services.pricing import FeeCalculator

calc = FeeCalculator()


def test_rental_days_are_inclusive():
    assert calc.rental_days(date(2024, 1, 1), date(2024, 1, 1)) == 1
    assert calc.rental_days(date(2024, 1, 1), date(2024, 1, 5)) == 5


def test_end_before_start_rejected():
    with pytest.raises(ValidationError):
        calc.rental_days(date(2024, 1, 5), date(2024, 1, 1))


def test_only_the_best_discount_tier_applies():
    """Thresholds {3: 10%, 7: 20%}: a 7-day rental gets 20%, not 30% and not 10%."""
    v = make_vehicle(discounts={3: 0.10, 7: 0.20})
    assert calc.discount_for(v, 2) == 0.0
    assert calc.discount_for(v, 3) == 0.10
    assert calc.discount_for(v, 7) == 0.20
    assert calc.discount_for(v, 30) == 0.20
    assert calc.estimate(v, date(2024, 1, 1), date(2024, 1, 7), False) == 560.0


def test_higher_threshold_with_smaller_discount_does_not_win():
    v = make_vehicle(discounts={3: 0.25, 10: 0.05})
    assert calc.discount_for(v, 12) == 0.25


def test_insured_five_day_rental_costs_550():
    v = make_vehicle(base_price=100.0, insurance_rate=0.10)
    assert calc.estimate(v, date(2024, 1, 1), date(2024, 1, 5), True) == 550.0
    assert calc.estimate(v, date(2024, 1, 1), date(2024, 1, 5), False) == 500.0


def test_insurance_is_charged_on_the_discounted_amount():
    v = make_vehicle(base_price=100.0, insurance_rate=0.10, discounts={7: 0.20})
    # 100 * 7 * 0.8 = 560, plus 10% of 560
    assert calc.estimate(v, date(2024, 1, 1), date(2024, 1, 7), True) == 616.0


@pytest.mark.parametrize("days", [1, 3, 7, 15])
def test_insurance_never_lowers_the_fee(days):
    v = make_vehicle(base_price=80.0, insurance_rate=0.15, discounts={3: 0.1, 7: 0.2})
    start = date(2024, 3, 1)
    end = date(2024, 3, days)
    assert calc.estimate(v, start, end, True) >= calc.estimate(v, start, end, False)


def _rental(start, end, insurance=False):
    return Rental(rental_id="R1", customer=Customer("Alice"), vehicle_id="V1",
                  start_date=start, end_date=end, username="alice", insurance_selected=insurance)


def test_late_return_is_billed_through_the_return_day():
    v = make_vehicle(base_price=100.0)
    r = _rental(date(2024, 1, 1), date(2024, 1, 5))
    assert calc.actual_fee(r, v, date(2024, 1, 7)) == 700.0


def test_early_return_still_pays_the_agreed_period():
    v = make_vehicle(base_price=100.0)
    r = _rental(date(2024, 1, 1), date(2024, 1, 5))
    assert calc.actual_fee(r, v, date(2024, 1, 2)) == 500.0


def test_late_return_can_unlock_a_discount_tier():
    v = make_vehicle(base_price=100.0, discounts={7: 0.20})
    r = _rental(date(2024, 1, 1), date(2024, 1, 5))
    assert calc.actual_fee(r, v, date(2024, 1, 7)) == 560.0
