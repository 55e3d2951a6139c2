#!/usr/bin/env python3
"""
Raise Lab Quotations - Application Entry Point
Creates Flask app and registers the quotation PDF Blueprint.
"""

import os
import logging
from flask import Flask

from raisequote.core.logging_config import setup_logging


def create_app():
    """Application factory."""
    setup_logging()
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "raisequote-dev")

    # ── Runtime self-test - catches path/logo issues at boot ──────────────────
    from raisequote.core.paths import validate_paths
    checks = validate_paths()
    for err in checks["errors"]:
        logging.getLogger("raisequote").error("STARTUP: %s", err)
    for warn in checks["warnings"]:
        logging.getLogger("raisequote").warning("STARTUP: %s", warn)

    from raisequote.api.routes_quotes import bp
    app.register_blueprint(bp)

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
