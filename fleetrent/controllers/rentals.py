from flask import Blueprint, request
from werkzeug.exceptions import BadRequest

from ..models.rental import Customer
from ..utils.constants import RentalStatus
from ..utils.decorators import get_catalog, json_body, localize, respond
from .tickets import render_ticket

bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")


def render_rental(r):
    return localize(r.as_dict(), "created_at")


def _customer(payload) -> Customer:
    c = payload.get("customer")
    if isinstance(c, str):
        c = {"name": c}
    if not isinstance(c, dict) or not (c.get("name") or "").strip():
        raise BadRequest("customer.name is required")
    return Customer(
        name=c["name"].strip(),
        contact=(c.get("contact") or "").strip(),
        email=(c.get("email") or "").strip(),
    )


@bp.get("")
def list_rentals():
    """Filter with ?status=pending|active or ?username=."""
    catalog = get_catalog()
    status = (request.args.get("status") or "").lower()
    username = request.args.get("username")
    if username:
        rentals = catalog.rentals_for_user(username)
    elif status == RentalStatus.PENDING:
        rentals = catalog.pending_rentals()
    elif status == RentalStatus.ACTIVE:
        rentals = catalog.active_rentals()
    else:
        rentals = list(catalog.rentals.values())
    return {"rentals": [render_rental(r) for r in rentals]}


@bp.post("")
@json_body("vehicle_id", "start_date", "end_date", "customer")
def create_rental(payload):
    customer = _customer(payload)
    outcome = get_catalog().create_rental(
        customer,
        payload["vehicle_id"],
        payload["start_date"],
        payload["end_date"],
        insurance=bool(payload.get("insurance")),
        username=payload.get("username") or customer.name,
    )
    return respond(outcome, render_rental, 201)


@bp.post("/offline")
@json_body("vehicle_id", "start_date", "end_date", "customer")
def create_offline_rental(payload):
    """Counter booking: rental is active immediately and the ticket comes back with it."""
    customer = _customer(payload)
    outcome = get_catalog().create_offline_rental(
        customer,
        payload["vehicle_id"],
        payload["start_date"],
        payload["end_date"],
        insurance=bool(payload.get("insurance")),
        username=payload.get("username") or customer.name,
    )
    return respond(outcome, lambda pair: {"rental": render_rental(pair[0]), "ticket": render_ticket(pair[1])}, 201)


@bp.get("/<rental_id>")
def rental_detail(rental_id):
    r = get_catalog().get_rental(rental_id)
    if r is None:
        return {"error": "NotFoundError", "message": f"Error: rental with ID '{rental_id}' not found"}, 404
    return render_rental(r)


@bp.get("/<rental_id>/ticket")
def rental_ticket(rental_id):
    t = get_catalog().tickets.get_by_rental_id(rental_id)
    if t is None:
        return {"error": "NotFoundError", "message": f"Error: no ticket for rental '{rental_id}'"}, 404
    return render_ticket(t)


@bp.post("/<rental_id>/approve")
def approve_rental(rental_id):
    return respond(get_catalog().approve_rental(rental_id), render_ticket)


@bp.post("/<rental_id>/cancel")
@json_body()
def cancel_rental(rental_id, payload):
    return respond(get_catalog().cancel_rental(rental_id, payload.get("reason")), render_rental)


@bp.post("/<rental_id>/return")
@json_body()
def return_vehicle(rental_id, payload):
    damages = payload.get("damages") or []
    if isinstance(damages, str):
        damages = [damages]
    return respond(get_catalog().return_vehicle(rental_id, damages), render_rental)


@bp.post("/<rental_id>/extend")
@json_body("end_date")
def extend_rental(rental_id, payload):
    insurance = payload.get("insurance")
    outcome = get_catalog().extend_rental(
        rental_id, payload["end_date"], None if insurance is None else bool(insurance),
    )
    return respond(outcome, render_ticket)


@bp.post("/reminders")
def send_reminders():
    return respond(get_catalog().send_reminders(), lambda n: {"sent": n})
