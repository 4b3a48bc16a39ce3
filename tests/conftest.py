"""
Shared pytest fixtures for the workload test suite.

Fixtures follow the Arrange-Act-Assert (AAA) pattern and ensure test
isolation: unit tests talk to fake sessions only, integration tests get
a real target server on an ephemeral port.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Environment variable overrides applied before project imports
- Fake HTTP sessions standing in for ``requests.Session``
- Live server fixture for real-network integration tests
"""

import os
from collections.abc import Generator

import pytest

# Set testing environment before importing project modules
os.environ["WORKLOAD_ENV"] = "testing"
# Keep Locust from gevent-patching threading for the whole session; the
# in-process runner tests rely on real threads.
os.environ.setdefault("LOCUST_SKIP_MONKEY_PATCH", "1")

from config import get_config
from shared.live_stack import live_target_url
from shared.test_helpers import FakeSession, constant_responder
from target_app import create_app


# -----------------------------------------------------------------------------
# Configuration Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def testing_config():
    """Configuration class used by every suite."""
    return get_config("testing")


# -----------------------------------------------------------------------------
# Target Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create the target application for the test session.

    Yields:
        Flask application instance configured for testing.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """
    Create a Flask test client for in-process requests to the target.

    Yields:
        Flask test client.
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="session")
def live_server() -> Generator[str, None, None]:
    """
    Serve the target application over real HTTP for the whole session.

    Yields:
        str: Base URL of the running server.
    """
    yield from live_target_url()


# -----------------------------------------------------------------------------
# Fake Session Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def session_factory():
    """
    Build a factory that hands out fake sessions and remembers them.

    Usage::

        factory = session_factory(constant_responder("hello world!"))
        runner = LoadRunner(config, HELLO, host, session_factory=factory)
        ...
        assert all(session.closed for session in factory.sessions)
    """

    def _make(responder=None):
        responder = responder or constant_responder("hello world!")

        def _factory() -> FakeSession:
            session = FakeSession(responder)
            _factory.sessions.append(session)
            return session

        _factory.sessions = []
        return _factory

    return _make
