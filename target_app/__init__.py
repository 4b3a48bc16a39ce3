"""
Target Service — Application Factory.

A minimal Flask service exposing the endpoints the workloads exercise,
so that runs and integration tests have a known-good system under test:

- ``GET /hello`` answers ``hello world!``
- ``GET /api/user/<id>`` answers the stored user name (``测试`` for id 1)
- ``GET /api/health`` answers a JSON health check

Key Concepts Demonstrated:
- Application Factory pattern (create_app) for flexible configuration
- Blueprint registration for modular route organisation
- Environment-aware configuration loading via get_config
"""

from __future__ import annotations

import logging

from flask import Flask

from config import get_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Construct and configure the target Flask application.

    Args:
        config_name: Optional environment key ("development", "testing",
            "production").  When *None*, the WORKLOAD_ENV environment
            variable is consulted.

    Returns:
        A configured Flask application with the target routes registered.
    """
    app = Flask(__name__)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    # Serve non-ASCII bodies as-is rather than \u-escaped.
    app.json.ensure_ascii = False

    logger.info("Creating target app with config: %s", config_class.__name__)

    from target_app.routes import target_bp

    app.register_blueprint(target_bp)
    return app
