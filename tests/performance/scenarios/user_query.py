"""
``/api/user/1`` Locust scenario.

Defines :class:`UserQueryUser`: each iteration requests ``/api/user/1``
and checks that the body is exactly ``测试`` (the ``Query ads
successfully`` check).  No pacing, so every user issues its next
request as soon as the previous one finishes.
"""

from __future__ import annotations

from locust import constant, tag

from tests.performance.scenarios.base import WorkloadUser, configured
from workload.scenarios import USER_QUERY


@tag(USER_QUERY.tag)
class UserQueryUser(WorkloadUser):
    """Unpaced user lookup workload."""

    definition = configured(USER_QUERY)
    wait_time = constant(definition.pacing_seconds or 0)
