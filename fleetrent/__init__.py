import logging

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import config_for_env
from .controllers.rentals import bp as rentals_bp
from .controllers.tickets import bp as tickets_bp
from .controllers.vehicles import bp as vehicles_bp
from .models.store import MemoryRepository, PickleRepository
from .services.catalog import RentalCatalog
from .services.notifications import LoggingNotifier
from .utils.clock import make_today


def build_catalog(config) -> RentalCatalog:
    """Wire a catalog from a Flask config mapping and load its saved state."""
    path = config.get("DATA_PATH")
    repository = PickleRepository(path) if path else MemoryRepository()
    catalog = RentalCatalog(
        repository=repository,
        notifier=LoggingNotifier(),
        today=make_today(config.get("TIMEZONE")),
        buffer_days=config.get("BUFFER_DAYS"),
        pickup_location=config.get("PICKUP_LOCATION"),
    )
    catalog.load()
    return catalog


def create_app(config=None, catalog=None):
    app = Flask(__name__)
    app.config.from_object(config_for_env())
    if config:
        app.config.update(config)

    logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logging.getLogger("fleetrent").setLevel(app.config["LOG_LEVEL"])

    app.extensions["fleetrent"] = catalog or build_catalog(app.config)
    app.register_blueprint(vehicles_bp)
    app.register_blueprint(rentals_bp)
    app.register_blueprint(tickets_bp)

    @app.errorhandler(HTTPException)
    def http_error(e):
        app.logger.info("%s %s -> %s %s", request.method, request.path, e.code, e.description)
        return jsonify({"error": e.name, "message": e.description}), e.code

    return app
