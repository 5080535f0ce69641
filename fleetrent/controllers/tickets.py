from flask import Blueprint

from ..utils.decorators import get_catalog, json_body, localize, respond

bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


def render_ticket(t):
    return localize(t.as_dict(), "generated_at")


@bp.get("/stats")
def ticket_stats():
    return get_catalog().tickets.stats()


@bp.get("/<ticket_id>")
def ticket_detail(ticket_id):
    t = get_catalog().tickets.get(ticket_id)
    if t is None:
        return {"error": "NotFoundError", "message": f"Error: ticket '{ticket_id}' not found"}, 404
    return render_ticket(t)


@bp.post("/<ticket_id>/validate")
@json_body("name")
def validate_ticket(ticket_id, payload):
    """Pickup desk: the customer presents the ticket and their name."""
    return respond(get_catalog().validate_ticket(ticket_id, payload["name"]), render_ticket)
