"""Flask front-end serving the commute boards."""

import logging
from typing import Optional

from flask import Flask, abort, jsonify, redirect, render_template, url_for

from .board import DEFAULT_ROUTE, ROUTES, CommuteBoard
from .config import Settings
from .exceptions import PendlarnError
from .trafikverket_client import TrafikverketClient

logger = logging.getLogger(__name__)

APP_MANIFEST = {
    "name": "Pendlarn",
    "short_name": "Pendlarn",
    "icons": [
        {
            "src": "/static/icon.svg",
            "sizes": "any",
            "type": "image/svg+xml",
            "purpose": "any maskable",
        }
    ],
    "theme_color": "#007bff",
    "background_color": "whitesmoke",
    "display": "standalone",
}


def create_app(settings: Settings, client: Optional[TrafikverketClient] = None) -> Flask:
    """
    Create the web application.

    Args:
        settings: Loaded application settings.
        client: Optional client to use instead of one built from settings.
    """
    app = Flask(__name__)

    if client is None:
        client = TrafikverketClient(
            settings.trafikverket_api_key,
            url=settings.trafikverket_url,
            timeout=settings.request_timeout,
        )
    board = CommuteBoard(client, timezone=settings.tzinfo())

    @app.get("/")
    def index():
        return redirect(url_for("now", slug=DEFAULT_ROUTE))

    @app.get("/now/<slug>")
    def now(slug: str):
        if slug not in ROUTES:
            abort(404)
        try:
            route, rows = board.departures(slug)
        except PendlarnError as e:
            logger.error(f"Error getting trains ({type(e).__name__}): {e}")
            abort(500)
        return render_template("board.html", route=route, routes=ROUTES.values(), rows=rows)

    @app.get("/static/manifest.json")
    def manifest():
        return jsonify(APP_MANIFEST)

    return app
