"""Serve the target application: ``python -m target_app``."""

from config import get_config
from target_app import create_app

config_class = get_config()
app = create_app()
app.run(
    host=config_class.TARGET_BIND_HOST,
    port=int(config_class.TARGET_PORT),
    threaded=True,
    use_reloader=False,
)
