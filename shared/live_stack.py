"""Live target-server helpers for integration test suites."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Generator

import requests
from werkzeug.serving import make_server

from target_app import create_app


def is_target_ready(url: str, timeout: int = 2) -> bool:
    """Return True when the target health endpoint responds with 200."""
    try:
        response = requests.get(f"{url}/api/health", timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def wait_for_target_healthy(url: str, timeout: int = 30, interval: float = 0.2) -> None:
    """Poll the target health endpoint until ready or timeout."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if is_target_ready(url):
            return
        time.sleep(interval)
    raise RuntimeError(f"Target at {url} not healthy after {timeout}s")


def live_target_url(
    *,
    base_url_env: str = "TEST_TARGET_URL",
    bind_host: str = "127.0.0.1",
) -> Generator[str, None, None]:
    """
    Yield a healthy target base URL, starting an in-process server when needed.

    Priority:
    1. Use explicit base URL from `base_url_env` (and wait for health).
    2. Serve the bundled target app on an ephemeral port in a background
       thread, shutting it down on exit.
    """
    provided_base_url = os.getenv(base_url_env)
    if provided_base_url:
        wait_for_target_healthy(provided_base_url)
        yield provided_base_url
        return

    app = create_app("testing")
    # Port 0 lets the OS pick a free port so parallel sessions never clash.
    server = make_server(bind_host, 0, app, threaded=True)
    server_thread = threading.Thread(target=server.serve_forever, daemon=True)
    server_thread.start()

    base_url = f"http://{bind_host}:{server.server_port}"
    try:
        wait_for_target_healthy(base_url)
        yield base_url
    finally:
        server.shutdown()
        server_thread.join(timeout=5)
