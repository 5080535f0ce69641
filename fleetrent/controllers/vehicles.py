from flask import Blueprint, request

from ..models.vehicle import Vehicle
from ..utils.constants import MaintenanceType
from ..utils.decorators import get_catalog, json_body, localize, respond

bp = Blueprint("vehicles", __name__, url_prefix="/api/vehicles")


def render_vehicle(v):
    return v.as_dict()


def render_issue(issue):
    return localize(issue.as_dict(), "reported_at", "resolved_at")


@bp.get("")
def list_vehicles():
    """All vehicles, or only bookable ones with ?available=1."""
    catalog = get_catalog()
    if request.args.get("available") in ("1", "true", "yes"):
        vehicles = catalog.available_vehicles()
    else:
        vehicles = list(catalog.vehicles.values())
    return {"vehicles": [render_vehicle(v) for v in vehicles]}


@bp.post("")
@json_body("vehicle_id", "brand", "model", "base_price")
def register_vehicle(payload):
    vehicle = Vehicle(
        vehicle_id=str(payload["vehicle_id"]),
        brand=str(payload["brand"]).strip(),
        model=str(payload["model"]).strip(),
        base_price=payload["base_price"],
        insurance_rate=payload.get("insurance_rate") or 0.0,
        long_term_discounts=payload.get("long_term_discounts") or {},
        plate_no=(payload.get("plate_no") or "").strip(),
        vehicle_type=(payload.get("type") or "car").lower().strip(),
    )
    return respond(get_catalog().add_vehicle(vehicle), render_vehicle, 201)


@bp.get("/<vid>")
def vehicle_detail(vid):
    v = get_catalog().get_vehicle(vid)
    if v is None:
        return {"error": "NotFoundError", "message": f"Error: vehicle with ID '{vid}' not found"}, 404
    data = render_vehicle(v)
    data["maintenance"] = [render_issue(i) for i in v.maintenance_logs]
    return data


@bp.get("/<vid>/conflicts")
def vehicle_conflicts(vid):
    """Conflict query for a prospective booking: ?start=YYYY-MM-DD&end=YYYY-MM-DD[&username=]."""
    outcome = get_catalog().check_conflict(
        vid,
        request.args.get("start", ""),
        request.args.get("end", ""),
        request.args.get("username") or None,
    )
    return respond(outcome, lambda desc: {"available": desc is None, "conflict": desc})


@bp.get("/<vid>/periods")
def vehicle_periods(vid):
    return respond(get_catalog().unavailable_periods(vid), lambda periods: {"periods": periods})


@bp.post("/<vid>/status")
@json_body("status")
def vehicle_status(vid, payload):
    status = str(payload["status"]).lower().strip()
    return respond(get_catalog().set_vehicle_status(vid, status), render_vehicle)


@bp.post("/<vid>/maintenance")
@json_body("description", "reported_by")
def add_issue(vid, payload):
    outcome = get_catalog().add_maintenance_issue(
        vid,
        (payload.get("type") or MaintenanceType.DAMAGE_REPORT).lower().strip(),
        payload["description"],
        payload["reported_by"],
        payload.get("severity", 3),
    )
    return respond(outcome, render_issue, 201)


@bp.post("/<vid>/maintenance/<issue_id>/resolve")
@json_body()
def resolve_issue(vid, issue_id, payload):
    outcome = get_catalog().resolve_maintenance_issue(
        vid, issue_id, payload.get("cost") or 0.0, payload.get("resolved_by"),
    )
    return respond(outcome, render_issue)


@bp.post("/sync")
def sync_statuses():
    """Rebuild vehicle statuses from schedules and maintenance logs."""
    return respond(get_catalog().sync_vehicle_statuses(), lambda changed: {"changed": changed})
