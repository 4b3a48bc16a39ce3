"""
Locust scenario user classes.

Each module in this package defines one Locust ``HttpUser`` subclass
bound to a registered :class:`~workload.scenarios.ScenarioDefinition`:

- :mod:`.hello`: ``GET /hello`` with 10 s pacing
- :mod:`.user_query`: ``GET /api/user/1`` with no pacing

All concrete scenarios inherit from :class:`.base.WorkloadUser`, which
performs the request and evaluates the check.
"""
