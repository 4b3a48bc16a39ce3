"""
Validate run results against threshold configuration.

After a run completes, CI uses this module to decide whether the build
passes or fails.  Results come from one of two places:

- a :class:`~workload.runner.RunSummary` (or its JSON dump) produced by
  the in-process runner, or
- the ``*_stats.csv`` file Locust writes with ``--csv``; only its
  **Aggregated** row is used.

Limits are read from :file:`thresholds.yml`:

- **Error rate (%)** — failed requests / requests × 100
- **P95 latency (ms)** — the 95th-percentile response time
- **Check failures (%)** — optional; only available for in-process runs,
  since Locust folds check failures into its failure count.

Exit codes follow a three-state convention so that CI can distinguish
"thresholds breached" from "script crashed":

- ``0`` — all thresholds passed
- ``1`` — at least one threshold was breached
- ``2`` — the script itself failed (missing file, bad YAML, etc.)
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from workload.runner import RunSummary

# Three-state exit codes so CI can tell "test failed" from "script crashed".
EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1
EXIT_SCRIPT_ERROR = 2


@dataclass(frozen=True)
class Thresholds:
    max_error_rate_percent: float
    max_p95_ms: float
    max_check_failure_percent: float | None = None


@dataclass(frozen=True)
class Measurements:
    error_rate_percent: float
    p95_ms: float
    check_failure_percent: float | None = None


@dataclass(frozen=True)
class MetricResult:
    label: str
    actual: float
    limit: float

    @property
    def passed(self) -> bool:
        return self.actual <= self.limit


@dataclass(frozen=True)
class ThresholdReport:
    metrics: tuple[MetricResult, ...]

    @property
    def passed(self) -> bool:
        return all(metric.passed for metric in self.metrics)

    @property
    def exit_code(self) -> int:
        return EXIT_PASS if self.passed else EXIT_THRESHOLD_BREACH


def load_thresholds(path: Path) -> Thresholds:
    """
    Read threshold limits from a YAML file.

    Args:
        path: Path to a YAML file containing ``max_error_rate_percent``
            and ``max_p95_ms`` keys, and optionally
            ``max_check_failure_percent``.

    Returns:
        The parsed limits.

    Raises:
        ValueError: If a required key is missing or any value is
            non-numeric.
    """
    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError("Thresholds file must contain a mapping")

    try:
        max_error_rate = float(data["max_error_rate_percent"])
        max_p95_ms = float(data["max_p95_ms"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(
            "Thresholds file must define numeric max_error_rate_percent and max_p95_ms"
        ) from exc

    max_check_failure = data.get("max_check_failure_percent")
    if max_check_failure is not None:
        max_check_failure = _parse_float(max_check_failure, "max_check_failure_percent")

    return Thresholds(
        max_error_rate_percent=max_error_rate,
        max_p95_ms=max_p95_ms,
        max_check_failure_percent=max_check_failure,
    )


def _parse_float(value: Any, field_name: str) -> float:
    """
    Coerce *value* to ``float``, stripping ``%`` suffixes if present.

    Raises:
        ValueError: If the value is missing, empty, or non-numeric.
    """
    if value is None:
        raise ValueError(f"Missing field: {field_name}")

    text = str(value).strip().replace("%", "")
    if text == "":
        raise ValueError(f"Empty value for field: {field_name}")

    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"Non-numeric value for {field_name}: {value}") from exc


def load_aggregated_row(stats_path: Path) -> dict[str, str]:
    """
    Find and return the ``Aggregated`` summary row from a Locust stats CSV.

    Locust writes one row per endpoint plus a final ``Aggregated`` row.
    Both the ``Name`` and ``Type`` columns are checked, since the column
    layout varies between Locust versions.

    Raises:
        ValueError: If no ``Aggregated`` row is found.
    """
    with Path(stats_path).open("r", encoding="utf-8", newline="") as handle:
        rows = list(csv.DictReader(handle))

    for row in rows:
        if row.get("Name") == "Aggregated" or row.get("Type") == "Aggregated":
            return row

    raise ValueError("Could not find 'Aggregated' row in stats CSV")


def _extract_p95_ms(row: dict[str, str]) -> float:
    # Different Locust versions label this column differently.
    candidates = ("95%", "95%ile", "95th percentile", "p95")
    for candidate in candidates:
        if candidate in row and row[candidate] not in (None, ""):
            return _parse_float(row[candidate], candidate)
    raise ValueError("Could not find p95 column in stats CSV")


def measurements_from_locust_row(row: dict[str, str]) -> Measurements:
    """
    Compute measurements from a Locust ``Aggregated`` row.

    Raises:
        ValueError: If counts are missing or ``Request Count`` is zero.
    """
    request_count = _parse_float(row.get("Request Count"), "Request Count")
    failure_count = _parse_float(row.get("Failure Count"), "Failure Count")

    if request_count <= 0:
        raise ValueError("Request Count must be > 0 for threshold checks")

    return Measurements(
        error_rate_percent=(failure_count / request_count) * 100.0,
        p95_ms=_extract_p95_ms(row),
    )


def measurements_from_summary(summary: RunSummary) -> Measurements:
    """
    Compute measurements from an in-process run.

    Raises:
        ValueError: If the run recorded no iterations.
    """
    if summary.iterations <= 0:
        raise ValueError("Run recorded no iterations; nothing to check")

    return Measurements(
        error_rate_percent=summary.error_rate_percent,
        p95_ms=summary.percentile(95),
        check_failure_percent=summary.check_failure_percent,
    )


def measurements_from_summary_json(path: Path) -> Measurements:
    """Read measurements from a summary written by ``workload run --summary-json``."""
    with Path(path).open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    if not isinstance(data, dict):
        raise ValueError(f"Summary file must contain a JSON object: {path}")

    if _parse_float(data.get("iterations"), "iterations") <= 0:
        raise ValueError("Run recorded no iterations; nothing to check")

    return Measurements(
        error_rate_percent=_parse_float(data.get("error_rate_percent"), "error_rate_percent"),
        p95_ms=_parse_float(data.get("p95_ms"), "p95_ms"),
        check_failure_percent=_parse_float(
            data.get("check_failure_percent"), "check_failure_percent"
        ),
    )


def measurements_from_file(path: Path) -> Measurements:
    """Dispatch on file type: ``.json`` summaries or Locust ``.csv`` stats."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        return measurements_from_summary_json(path)
    return measurements_from_locust_row(load_aggregated_row(path))


def evaluate(measurements: Measurements, thresholds: Thresholds) -> ThresholdReport:
    """Compare measurements against limits."""
    metrics = [
        MetricResult(
            "Error rate (%)",
            measurements.error_rate_percent,
            thresholds.max_error_rate_percent,
        ),
        MetricResult("P95 latency (ms)", measurements.p95_ms, thresholds.max_p95_ms),
    ]
    if (
        thresholds.max_check_failure_percent is not None
        and measurements.check_failure_percent is not None
    ):
        metrics.append(
            MetricResult(
                "Check failures (%)",
                measurements.check_failure_percent,
                thresholds.max_check_failure_percent,
            )
        )
    return ThresholdReport(metrics=tuple(metrics))


def print_summary(report: ThresholdReport) -> None:
    """Print a human-readable results table to stdout for CI logs."""
    print("Performance Threshold Check")
    print("-" * 60)
    print(f"{'Metric':<22}{'Actual':>12}{'Limit':>14}{'Status':>12}")
    print("-" * 60)

    for metric in report.metrics:
        status = "PASS" if metric.passed else "FAIL"
        print(f"{metric.label:<22}{metric.actual:>12.2f}{metric.limit:>14.2f}{status:>12}")

    print("-" * 60)
    print(f"Overall: {'PASS' if report.passed else 'FAIL'}")
