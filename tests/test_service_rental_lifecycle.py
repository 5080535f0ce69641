"""
Rental lifecycle through the catalog: create -> approve -> pickup -> return,
plus cancel and extend, and the status of the vehicle at each step.
"""
from datetime import date

from conftest import make_vehicle
from fleetrent.exceptions import ConflictError, InvalidStateError, TicketNotUsedError
from fleetrent.utils.constants import MaintenanceType, RentalStatus, VehicleStatus


def _active(catalog, customer, start="2024-01-01", end="2024-01-05", vid="V1", insurance=False, pickup=True):
    ok, rental, err = catalog.create_rental(customer, vid, start, end, insurance=insurance)
    assert ok, err
    ok, ticket, err = catalog.approve_rental(rental.rental_id)
    assert ok, err
    if pickup:
        assert catalog.validate_ticket(ticket.ticket_id, customer.name).ok
    return rental, ticket


def test_create_books_a_pending_rental(catalog, vehicle, alice, repo):
    ok, rental, err = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05", insurance=True)

    assert ok and err is None
    assert rental.status == RentalStatus.PENDING
    assert rental.total_fee == 550.0
    assert rental.username == "Alice Tan"
    assert vehicle.status == VehicleStatus.RESERVED
    assert [b.rental_id for b in vehicle.bookings] == [rental.rental_id]
    assert rental in repo.rentals


def test_create_rejects_unknown_vehicle(catalog, alice):
    ok, _, err = catalog.create_rental(alice, "NOPE", "2024-01-01", "2024-01-02")
    assert not ok
    assert err.status_code == 404


def test_create_rejects_bad_dates(catalog, vehicle, alice):
    assert not catalog.create_rental(alice, "V1", "2024-01-05", "2024-01-01").ok
    assert not catalog.create_rental(alice, "V1", "05/01/2024", "2024-01-06").ok
    assert vehicle.bookings == []


def test_approve_issues_ticket_and_rents_vehicle(catalog, vehicle, alice, notifier):
    _, rental, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05")

    ok, ticket, _ = catalog.approve_rental(rental.rental_id)

    assert ok
    assert rental.status == RentalStatus.ACTIVE
    assert vehicle.status == VehicleStatus.RENTED
    assert ticket.rental_id == rental.rental_id
    assert ticket.vehicle_info == "Toyota Corolla"
    assert ticket.plate_no == "ABC123"
    assert not ticket.used
    assert catalog.tickets.get_by_rental_id(rental.rental_id) is ticket
    assert notifier.sent == [("approval", rental.rental_id, ticket.ticket_id)]


def test_second_approve_is_rejected_and_changes_nothing(catalog, vehicle, alice, notifier):
    _, rental, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05")
    _, ticket, _ = catalog.approve_rental(rental.rental_id)

    ok, value, err = catalog.approve_rental(rental.rental_id)

    assert not ok and value is None
    assert isinstance(err, InvalidStateError)
    assert catalog.tickets.stats()["total"] == 1
    assert catalog.tickets.get_by_rental_id(rental.rental_id) is ticket
    assert notifier.kinds() == ["approval"]


def test_cancel_pending_frees_vehicle(catalog, vehicle, alice, notifier):
    _, rental, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05")

    ok, cancelled, _ = catalog.cancel_rental(rental.rental_id, "  ")

    assert ok and cancelled is rental
    assert rental.status == RentalStatus.CANCELLED
    assert rental.cancel_reason == "No reason provided"
    assert vehicle.bookings == []
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert notifier.sent == [("rejection", rental.rental_id, "No reason provided")]


def test_cancel_keeps_vehicle_reserved_for_other_bookings(catalog, vehicle, alice, bob):
    _, first, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-03")
    _, second, _ = catalog.create_rental(bob, "V1", "2024-01-10", "2024-01-12")

    assert catalog.cancel_rental(first.rental_id, "duplicate").ok
    assert vehicle.status == VehicleStatus.RESERVED

    assert catalog.cancel_rental(second.rental_id).ok
    assert vehicle.status == VehicleStatus.AVAILABLE


def test_active_rental_cannot_be_cancelled(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice, pickup=False)
    ok, _, err = catalog.cancel_rental(rental.rental_id, "too late")
    assert not ok and isinstance(err, InvalidStateError)
    assert rental.status == RentalStatus.ACTIVE


def test_return_requires_validated_ticket(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice, pickup=False)

    ok, _, err = catalog.return_vehicle(rental.rental_id)

    assert not ok
    assert isinstance(err, TicketNotUsedError)
    assert rental.status == RentalStatus.ACTIVE
    assert len(vehicle.bookings) == 1


def test_pending_rental_cannot_be_returned(catalog, vehicle, alice):
    _, rental, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05")
    ok, _, err = catalog.return_vehicle(rental.rental_id)
    assert not ok and isinstance(err, InvalidStateError)


def test_late_return_bills_extra_days(catalog, clock, vehicle, alice, notifier):
    rental, _ = _active(catalog, alice)
    clock.current = date(2024, 1, 7)

    ok, returned, _ = catalog.return_vehicle(rental.rental_id)

    assert ok and returned is rental
    assert rental.status == RentalStatus.RETURNED
    assert rental.actual_fee == 700.0
    assert rental.returned_on == date(2024, 1, 7)
    assert vehicle.bookings == []
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert notifier.kinds()[-1] == "return"


def test_insured_late_return(catalog, clock, vehicle, alice):
    rental, _ = _active(catalog, alice, insurance=True)
    clock.current = date(2024, 1, 7)
    catalog.return_vehicle(rental.rental_id)
    assert rental.actual_fee == 770.0


def test_second_return_is_rejected(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice)
    assert catalog.return_vehicle(rental.rental_id).ok
    ok, _, err = catalog.return_vehicle(rental.rental_id)
    assert not ok and isinstance(err, InvalidStateError)


def test_return_files_damage_reports(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice)

    ok, _, _ = catalog.return_vehicle(rental.rental_id, ["Scratched bumper", "", "   ", "Cracked mirror"])

    assert ok
    issues = vehicle.unresolved_issues()
    assert [i.description for i in issues] == ["Scratched bumper", "Cracked mirror"]
    assert all(i.log_type == MaintenanceType.DAMAGE_REPORT for i in issues)
    assert all(i.reported_by == "Alice Tan" for i in issues)
    assert vehicle.status == VehicleStatus.AVAILABLE


def test_return_with_critical_issue_sends_vehicle_to_maintenance(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice)
    ok, issue, _ = catalog.add_maintenance_issue("V1", MaintenanceType.REPAIR, "Engine warning", "staff", 4)
    assert ok and issue.is_critical
    assert vehicle.status == VehicleStatus.RENTED

    catalog.return_vehicle(rental.rental_id)

    assert vehicle.status == VehicleStatus.UNDER_MAINTENANCE


def test_extend_reprices_and_reissues_ticket(catalog, alice):
    catalog.add_vehicle(make_vehicle("V2", discounts={3: 0.10, 7: 0.20}))
    rental, old_ticket = _active(catalog, alice, vid="V2")
    assert rental.total_fee == 450.0
    rental.due_soon_sent = True
    rental.overdue_sent = True

    ok, ticket, err = catalog.extend_rental(rental.rental_id, "2024-01-08")

    assert ok, err
    assert rental.end_date == date(2024, 1, 8)
    assert rental.total_fee == 640.0
    assert not rental.due_soon_sent and not rental.overdue_sent
    assert ticket.ticket_id != old_ticket.ticket_id
    assert ticket.end_date == date(2024, 1, 8)
    assert not ticket.used
    assert catalog.tickets.get(old_ticket.ticket_id) is None
    assert catalog.tickets.get_by_rental_id(rental.rental_id) is ticket
    bookings = catalog.get_vehicle("V2").bookings
    assert [(b.start, b.end) for b in bookings] == [(date(2024, 1, 1), date(2024, 1, 8))]


def test_extend_can_add_insurance(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice)
    ok, _, _ = catalog.extend_rental(rental.rental_id, "2024-01-06", insurance=True)
    assert ok
    assert rental.insurance_selected
    assert rental.total_fee == 660.0


def test_extend_ignores_buffer_but_not_another_renters_dates(catalog, vehicle, alice, bob):
    """Bob holds 01-12..01-14: extending into his buffer is fine, into his dates is not."""
    rental, _ = _active(catalog, alice)
    ok, _, err = catalog.create_rental(bob, "V1", "2024-01-12", "2024-01-14")
    assert ok, err

    ok, _, err = catalog.extend_rental(rental.rental_id, "2024-01-12")

    assert not ok and isinstance(err, ConflictError)
    assert err.renter == "Bob Lee"
    assert err.window == (date(2024, 1, 12), date(2024, 1, 14))
    assert "buffer" not in err.message
    assert rental.end_date == date(2024, 1, 5)
    assert (date(2024, 1, 1), date(2024, 1, 5)) in [(b.start, b.end) for b in vehicle.bookings]

    ok, _, err = catalog.extend_rental(rental.rental_id, "2024-01-11")

    assert ok, err
    assert rental.end_date == date(2024, 1, 11)
    assert [(b.start, b.end) for b in vehicle.bookings] == [
        (date(2024, 1, 1), date(2024, 1, 11)),
        (date(2024, 1, 12), date(2024, 1, 14)),
    ]


def test_only_active_rentals_extend(catalog, vehicle, alice):
    _, rental, _ = catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-05")
    ok, _, err = catalog.extend_rental(rental.rental_id, "2024-01-08")
    assert not ok and isinstance(err, InvalidStateError)


def test_extend_cannot_end_before_start(catalog, vehicle, alice):
    rental, _ = _active(catalog, alice)
    ok, _, err = catalog.extend_rental(rental.rental_id, "2023-12-31")
    assert not ok and err.status_code == 400


def test_missing_customer_is_a_validation_error(catalog, vehicle):
    ok, _, err = catalog.create_rental(None, "V1", "2024-01-01", "2024-01-02")
    assert not ok and err.status_code == 400
    ok, _, err = catalog.create_offline_rental(None, "V1", "2024-01-01", "2024-01-02")
    assert not ok and err.status_code == 400
    assert vehicle.bookings == []


def test_unrecorded_damage_report_does_not_block_return(catalog, vehicle, alice, monkeypatch):
    rental, _ = _active(catalog, alice)
    monkeypatch.setattr(catalog.maintenance, "add_issue", lambda *a, **kw: False)

    ok, _, _ = catalog.return_vehicle(rental.rental_id, ["Scratched bumper"])

    assert ok
    assert rental.status == RentalStatus.RETURNED
    assert vehicle.maintenance_logs == []
    assert vehicle.status == VehicleStatus.AVAILABLE


def test_offline_booking_is_active_with_ticket(catalog, vehicle, bob):
    ok, (rental, ticket), _ = catalog.create_offline_rental(bob, "V1", "2024-01-01", "2024-01-02")
    assert ok
    assert rental.status == RentalStatus.ACTIVE
    assert ticket.customer_name == "Bob Lee"
    assert vehicle.status == VehicleStatus.RENTED


def test_rentals_for_user_newest_first(catalog, vehicle, alice):
    catalog.create_rental(alice, "V1", "2024-01-01", "2024-01-02")
    catalog.create_rental(alice, "V1", "2024-02-01", "2024-02-02")
    starts = [r.start_date for r in catalog.rentals_for_user("Alice Tan")]
    assert starts == [date(2024, 2, 1), date(2024, 1, 1)]
    assert len(catalog.pending_rentals()) == 2
    assert catalog.active_rentals() == []
