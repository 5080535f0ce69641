from functools import wraps

from flask import current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from fleetrent.utils.clock import fmt_iso_local


def json_body(*required):
    """
    Parse the JSON request body and pass it as ``payload``.
    Missing or empty required fields abort with 400.
    """

    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            payload = request.get_json(silent=True)
            if payload is None:
                payload = {}
            if not isinstance(payload, dict):
                raise BadRequest("Request body must be a JSON object")
            missing = [k for k in required if payload.get(k) in (None, "")]
            if missing:
                raise BadRequest(f"Missing field(s): {', '.join(missing)}")
            return fn(*args, payload=payload, **kwargs)

        return wrapper

    return deco


def get_catalog():
    return current_app.extensions["fleetrent"]


def localize(data: dict, *keys) -> dict:
    """Render timestamp fields in the configured business timezone."""
    tz = current_app.config["TIMEZONE"]
    for k in keys:
        if data.get(k) is not None:
            data[k] = fmt_iso_local(data[k], tz)
    return data


def respond(outcome, render=lambda v: v, status: int = 200):
    """Turn a catalog Outcome into a JSON response."""
    if outcome.ok:
        return jsonify(render(outcome.value)), status
    err = outcome.error
    return jsonify(err.to_dict()), err.status_code
