"""
Helpers for handing a workload to Locust as the external runner.

The Locust users themselves live in :mod:`tests.performance.locustfile`;
this module only translates a :class:`~workload.models.RunConfig` into
the equivalent headless command line.  Every virtual user is spawned in
the first second (spawn rate equals concurrency), matching a fixed-VU
run.
"""

from __future__ import annotations

from pathlib import Path

from workload.models import RunConfig, format_run_time
from workload.scenarios import ScenarioDefinition

DEFAULT_LOCUSTFILE = Path(__file__).resolve().parents[1] / "tests" / "performance" / "locustfile.py"


def locust_command(
    run_config: RunConfig,
    definition: ScenarioDefinition,
    host: str,
    *,
    locustfile: Path | str = DEFAULT_LOCUSTFILE,
    csv_prefix: str | None = None,
    executable: str = "locust",
) -> list[str]:
    """
    Build the argv for a headless Locust run of *definition*.

    Args:
        run_config: Validated run parameters.
        definition: Scenario whose user class should be spawned.
        host: Target root URL passed as ``--host``.
        locustfile: Path to the Locust entrypoint.
        csv_prefix: When given, Locust writes ``<prefix>_stats.csv`` etc.
        executable: Locust executable name or path.

    Returns:
        The command as a list suitable for ``subprocess.run``.
    """
    run_config.validate()
    cmd = [
        executable,
        "-f",
        str(locustfile),
        "--headless",
        "-u",
        str(run_config.concurrency),
        "-r",
        str(run_config.concurrency),
        "--run-time",
        format_run_time(run_config.duration_seconds),
        "--host",
        host,
        "--tags",
        definition.tag,
    ]
    if csv_prefix:
        cmd.extend(["--csv", csv_prefix, "--only-summary"])
    return cmd
