"""
Scenario definitions and single-iteration execution.

Both workloads share one parameterised :class:`ScenarioDefinition`;
they differ only in target path, expected body and pacing:

- ``hello``: ``GET /hello``, expects ``hello world!``, paces 10 s
  between iterations.
- ``user-query``: ``GET /api/user/1``, expects ``测试``, no pacing.

:func:`run_iteration` performs exactly one request and one check and
never raises for request-level failures; the outcome is returned as an
:class:`~workload.models.IterationResult` for the runner to record.

Key Concepts Demonstrated:
- Data-driven variants of a single scenario instead of copied scripts
- Transport errors mapped to recorded failures at the request seam
- One classification function shared by the in-process runner and the
  Locust users
"""

from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Any

import requests

from workload.checks import Check, body_equals
from workload.models import (
    ConfigurationError,
    FailureKind,
    IterationResult,
    Response,
    parse_pacing,
)

logger = logging.getLogger(__name__)

# Longest body excerpt quoted in failure messages.
_BODY_EXCERPT = 80


@dataclass(frozen=True)
class ScenarioDefinition:
    """
    One repeatable unit of work: a GET plus a body check.

    Attributes:
        name: Registry key, also used as the Locust request name prefix.
        path: Path requested on the target host.
        expected_body: Exact body the check compares against.
        check_name: Label under which check outcomes are counted.
        pacing_seconds: Think time after each iteration, or ``None``.
        tag: Locust ``--tags`` value selecting this scenario's user class.
    """

    name: str
    path: str
    expected_body: str
    check_name: str
    pacing_seconds: float | None = None
    tag: str = ""

    def url(self, host: str) -> str:
        return host.rstrip("/") + "/" + self.path.lstrip("/")

    @property
    def check(self) -> Check:
        return Check(self.check_name, body_equals(self.expected_body))

    @property
    def request_name(self) -> str:
        """Name under which the request is reported, e.g. ``/hello [GET]``."""
        return f"{self.path} [GET]"

    def with_pacing(self, pacing: Any) -> ScenarioDefinition:
        """Return a copy with pacing replaced (see :func:`parse_pacing`)."""
        return dataclasses.replace(self, pacing_seconds=parse_pacing(pacing))


HELLO = ScenarioDefinition(
    name="hello",
    path="/hello",
    expected_body="hello world!",
    check_name="Query successfully",
    pacing_seconds=10.0,
    tag="hello",
)

USER_QUERY = ScenarioDefinition(
    name="user-query",
    path="/api/user/1",
    expected_body="测试",
    check_name="Query ads successfully",
    pacing_seconds=None,
    tag="user",
)

SCENARIOS: dict[str, ScenarioDefinition] = {
    HELLO.name: HELLO,
    USER_QUERY.name: USER_QUERY,
}


def scenario_names() -> list[str]:
    return sorted(SCENARIOS)


def get_scenario(name: str) -> ScenarioDefinition:
    """
    Look up a registered scenario.

    Raises:
        ConfigurationError: If no scenario is registered under *name*.
    """
    try:
        return SCENARIOS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown scenario {name!r}; choose one of: {', '.join(scenario_names())}"
        ) from None


def evaluate_response(
    definition: ScenarioDefinition, response: Response
) -> tuple[bool, str | None]:
    """
    Classify a completed response for *definition*.

    A non-2xx status fails the iteration (and its check) regardless of
    the body.  Otherwise the scenario's check decides.

    Returns:
        ``(passed, reason)`` where *reason* is ``None`` on success and a
        human-readable failure message otherwise.
    """
    if not response.is_success:
        return False, f"Expected 2xx, got {response.status_code}"

    if not definition.check.evaluate(response):
        return False, (
            f"Check {definition.check_name!r} failed: expected body "
            f"{definition.expected_body!r}, got {response.body[:_BODY_EXCERPT]!r}"
        )

    return True, None


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def _transport_failure(
    definition: ScenarioDefinition, started: float, kind: FailureKind, error: str
) -> IterationResult:
    logger.debug("%s iteration failed (%s): %s", definition.name, kind.value, error)
    return IterationResult(
        scenario=definition.name,
        check_name=definition.check_name,
        check_passed=False,
        elapsed_ms=_elapsed_ms(started),
        failure=kind,
        error=error,
    )


def run_iteration(
    definition: ScenarioDefinition,
    session: requests.Session,
    host: str,
    timeout: float,
) -> IterationResult:
    """
    Issue one GET for *definition* and evaluate its check.

    Args:
        definition: Scenario to execute.
        session: HTTP session owned by the calling worker.
        host: Root URL of the target.
        timeout: Seconds to wait for the response.

    Returns:
        The iteration outcome.  Timeouts, connection errors and non-2xx
        statuses are recorded as failures, never raised.
    """
    url = definition.url(host)
    started = time.perf_counter()

    try:
        raw_response = session.get(url, timeout=timeout)
    except requests.Timeout as exc:
        return _transport_failure(
            definition, started, FailureKind.TIMEOUT, f"Request to {url} timed out: {exc}"
        )
    except requests.RequestException as exc:
        # DNS resolution, connection refused, TLS errors, malformed URLs.
        return _transport_failure(
            definition, started, FailureKind.CONNECTION, f"Request to {url} failed: {exc}"
        )

    elapsed_ms = _elapsed_ms(started)
    response = Response.from_requests(raw_response)
    passed, reason = evaluate_response(definition, response)

    failure = None
    if not response.is_success:
        failure = FailureKind.HTTP_STATUS
    elif not passed:
        failure = FailureKind.CHECK

    return IterationResult(
        scenario=definition.name,
        check_name=definition.check_name,
        check_passed=passed,
        elapsed_ms=elapsed_ms,
        status_code=response.status_code,
        failure=failure,
        error=reason,
    )
