"""
Flask web application for vehicle maintenance tracking (JSON API).

The signed-in user comes from the stored session. The X-User-Id header is
honoured only when TRUST_USER_ID_HEADER is set in the app config, for
deployments behind a proxy that has already authenticated the caller.
"""

import logging
from typing import Optional

from flask import Flask, g, jsonify, request

from garage import AuthServiceError, RemoteServiceError, ValidationError, to_api
from services import AppServices

logger = logging.getLogger(__name__)


def create_app(services: Optional[AppServices] = None) -> Flask:
    """
    Application factory.

    When no services are passed, they are built from settings at startup
    and closed when the process exits.
    """
    app = Flask(__name__)
    if services is None:
        services = AppServices.from_settings()
    app.extensions["services"] = services

    def get_services() -> AppServices:
        return app.extensions["services"]

    def current_user_id() -> Optional[str]:
        """User from the trusted X-User-Id header, else from the stored session."""
        header = request.headers.get("X-User-Id")
        if header and app.config.get("TRUST_USER_ID_HEADER"):
            return header
        return get_services().auth.restore_session()

    @app.before_request
    def load_user():
        g.user_id = None
        if request.endpoint is None or request.endpoint in ("schedule", "decode_vin"):
            return None
        try:
            g.user_id = current_user_id()
        except AuthServiceError as err:
            return jsonify({"error": err.user_message}), 401
        if g.user_id is None:
            return jsonify({"error": "Not signed in"}), 401
        return None

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return jsonify({"error": err.first_message, "errors": err.errors}), 400

    @app.errorhandler(RemoteServiceError)
    def handle_remote_error(err: RemoteServiceError):
        logger.error("Remote call failed: %s", err.user_message)
        return jsonify({"error": err.user_message}), 502

    @app.route("/schedule")
    def schedule():
        """Default maintenance schedule template."""
        return jsonify([to_api(item) for item in get_services().garage.schedule])

    @app.route("/vehicles", methods=["GET"])
    def list_vehicles():
        vehicles = get_services().garage.list_vehicles(g.user_id)
        return jsonify([to_api(v) for v in vehicles])

    @app.route("/vehicles", methods=["POST"])
    def add_vehicle():
        """Add a vehicle and create its default maintenance schedule."""
        form = request.get_json(silent=True) or request.form
        result = get_services().garage.add_vehicle(
            g.user_id,
            make=form.get("make"),
            model=form.get("model"),
            year=form.get("year"),
            mileage=form.get("mileage"),
            vin=form.get("vin"),
            nickname=form.get("nickname"),
            trim=form.get("trim"),
        )
        body = {
            "vehicle": to_api(result.vehicle),
            "tasks": [to_api(t) for t in result.tasks],
            "warnings": result.warnings,
        }
        return jsonify(body), 201

    @app.route("/vehicles/<vehicle_id>/mileage", methods=["PATCH"])
    def update_mileage(vehicle_id: str):
        form = request.get_json(silent=True) or request.form
        vehicle = get_services().garage.update_mileage(vehicle_id, form.get("mileage"))
        if vehicle is None:
            return jsonify({"error": f"Vehicle '{vehicle_id}' not found"}), 404
        return jsonify(to_api(vehicle))

    @app.route("/vehicles/<vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: str):
        get_services().garage.delete_vehicle(vehicle_id)
        return "", 204

    @app.route("/dashboard")
    def dashboard():
        """Overdue and upcoming tasks across the user's vehicles."""
        services = get_services()
        if request.args.get("all", "").lower() == "true":
            limit = None
        else:
            limit = request.args.get("limit", type=int)
            if limit is None:
                limit = services.settings.dashboard.task_limit

        data = services.garage.load_dashboard(g.user_id, limit=limit)
        urgent = data.most_urgent
        return jsonify(
            {
                "vehicles": [to_api(v) for v in data.vehicles],
                "overdue": [to_api(t) for t in data.overdue],
                "upcoming": [to_api(t) for t in data.upcoming],
                "mostUrgent": to_api(urgent) if urgent else None,
            }
        )

    @app.route("/vin/<vin>")
    def decode_vin(vin: str):
        result = get_services().registry.decode_vin(vin)
        if result is None:
            return jsonify({"error": "Could not decode VIN. Please enter manually."}), 404
        return jsonify(
            {
                "vin": result.vin,
                "make": result.make,
                "model": result.model,
                "year": result.year,
                "trim": result.trim,
            }
        )

    return app


if __name__ == "__main__":
    from services.logging_setup import setup_logging

    setup_logging()
    application = create_app()
    try:
        application.run(debug=True)
    finally:
        application.extensions["services"].close()
