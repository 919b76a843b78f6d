"""REST API server reporting the state of kelvin."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from flask import Flask, abort, jsonify, request
from flask_cors import CORS
from loguru import logger


def create_api(service) -> Flask:
    """
    Create Flask API application.

    Args:
        service: KelvinService whose lights and history are reported.

    Returns:
        Configured Flask app.
    """
    app = Flask(__name__)
    CORS(app)

    @app.route("/api/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint."""
        return jsonify({"status": "ok", "timestamp": datetime.now().isoformat()})

    @app.route("/api/status", methods=["GET"])
    def get_status():
        """Get overall system status."""
        status = service.get_status()
        stats = status["database_stats"]
        return jsonify({
            "status": "running" if status["running"] else "stopped",
            "bridge_connected": status["bridge_connected"],
            "last_poll": status["last_poll"],
            "lights": status["lights"],
            "automatic_lights": status["automatic_lights"],
            "total_events": stats["total_events"],
            "events_by_kind": stats["events_by_kind"],
            "timestamp": datetime.now().isoformat(),
        })

    @app.route("/api/lights", methods=["GET"])
    def get_lights():
        """Get the automation state of all lights."""
        lights = list(service.lights.values())
        return jsonify({
            "count": len(lights),
            "lights": [light.to_dict() for light in lights],
        })

    @app.route("/api/lights/<light_id>", methods=["GET"])
    def get_light(light_id: str):
        """Get the automation state of one light."""
        light = service.lights.get(light_id)
        if light is None:
            abort(404)
        return jsonify(light.to_dict())

    @app.route("/api/events", methods=["GET"])
    def get_events():
        """
        Get recent events.

        Query params:
            limit: Max number of events (default 100)
            light_id: Filter by light ID
            kind: Filter by event kind (manual_override, state_updated, ...)
            days: Get events from last N days (default 7)
        """
        limit = request.args.get("limit", 100, type=int)
        light_id = request.args.get("light_id")
        kind = request.args.get("kind")
        days = request.args.get("days", 7, type=int)

        events = service.database.get_events(
            light_id=light_id,
            kind=kind,
            start_date=datetime.now() - timedelta(days=days),
            limit=limit,
        )
        return jsonify({
            "count": len(events),
            "events": [event.to_dict() for event in events],
        })

    return app


class APIServer:
    """Runs Flask API in a background thread."""

    def __init__(self, service, host: str = "127.0.0.1", port: int = 8080):
        """
        Initialize API server.

        Args:
            service: KelvinService instance
            host: Host to bind to (0.0.0.0 for all interfaces)
            port: Port to listen on
        """
        self.app = create_api(service)
        self.host = host
        self.port = port
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Start API server in background thread."""
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="api-server",
        )
        self._thread.start()
        logger.info(f"🌐 API server started on http://{self.host}:{self.port}")

    def _run(self):
        """Run Flask app (called in background thread)."""
        # Suppress Flask's default logging
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

        self.app.run(
            host=self.host,
            port=self.port,
            debug=False,
            use_reloader=False,
        )
