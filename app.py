#!/usr/bin/env python3
"""
Label Review Web Interface

Flask app serving the review session and history APIs.
"""

import logging
from typing import Optional

from flask import Flask, jsonify

from config import ReviewSettings, get_settings
from repositories import configure_backend
from routes import history_bp, review_bp


def create_app(settings: Optional[ReviewSettings] = None) -> Flask:
    """Build the Flask app. Tests pass their own settings."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = Flask(__name__)
    app.config["REVIEW_SETTINGS"] = settings
    configure_backend(settings.history_backend, settings.history_dir)

    app.register_blueprint(history_bp)
    app.register_blueprint(review_bp)

    @app.route("/")
    def index():
        return jsonify({
            "service": "label-review",
            "history_backend": settings.history_backend,
            "page_size": settings.page_size,
            "highlight_duration_ms": settings.highlight_duration_ms,
        })

    return app


app = create_app()


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("  Label Review API")
    print("=" * 60)
    print("  Listening on http://localhost:5001")
    print("=" * 60 + "\n")
    app.run(debug=get_settings().debug, port=5001)
