"""
Command-line entry point for workload runs.

Usage examples::

    # Run the /hello workload in-process with the configured defaults
    workload run --scenario hello --host http://127.0.0.1:10000

    # Short smoke run with pacing disabled, gated by thresholds.yml
    workload run --scenario user-query --vus 10 --duration 30s \\
        --pacing none --thresholds tests/performance/thresholds.yml

    # Print the equivalent Locust command line
    workload locust-command --scenario hello --csv results/hello

    # Gate a finished Locust run
    workload check-thresholds --stats results/hello_stats.csv

Configuration errors exit with code 2 before any request is sent.
Failed checks alone do not change the exit code of ``run``; pass
``--thresholds`` to turn them into a CI gate.
"""

from __future__ import annotations

import argparse
import json
import logging
import shlex
import sys
from pathlib import Path

import yaml

from config import Config, get_config
from workload.locust_support import locust_command
from workload.models import ConfigurationError, RunConfig
from workload.runner import RunSummary, run_workload
from workload.scenarios import SCENARIOS, ScenarioDefinition, get_scenario, scenario_names
from workload.thresholds import (
    EXIT_PASS,
    EXIT_SCRIPT_ERROR,
    evaluate,
    load_thresholds,
    measurements_from_file,
    measurements_from_summary,
    print_summary,
)

logger = logging.getLogger(__name__)


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--scenario",
        choices=scenario_names(),
        help="Scenario to execute (default: WORKLOAD_SCENARIO)",
    )
    parser.add_argument("--host", help="Target root URL (default: TARGET_HOST)")
    parser.add_argument(
        "--vus",
        "--concurrency",
        dest="vus",
        help="Number of concurrent virtual users (default: WORKLOAD_CONCURRENCY)",
    )
    parser.add_argument(
        "--duration",
        help="Run duration such as 30s, 5m or 1h30m (default: WORKLOAD_DURATION)",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="workload",
        description="Run and gate HTTP workload definitions.",
    )
    parser.add_argument(
        "--env",
        help="Configuration environment (development, testing, production)",
    )
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scenario in-process")
    _add_run_options(run_parser)
    run_parser.add_argument(
        "--pacing",
        help="Think time after each iteration, e.g. 10s; 'none' disables it",
    )
    run_parser.add_argument("--timeout", help="Per-request timeout in seconds")
    run_parser.add_argument(
        "--summary-json",
        type=Path,
        help="Write the run summary as JSON to this path",
    )
    run_parser.add_argument(
        "--thresholds",
        type=Path,
        help="Gate the run against this thresholds YAML file",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and print the plan without sending requests",
    )

    locust_parser = subparsers.add_parser(
        "locust-command", help="Print the Locust command line for a scenario"
    )
    _add_run_options(locust_parser)
    locust_parser.add_argument("--csv", dest="csv_prefix", help="Locust --csv prefix")

    thresholds_parser = subparsers.add_parser(
        "check-thresholds", help="Check run results against thresholds"
    )
    thresholds_parser.add_argument(
        "--stats",
        required=True,
        type=Path,
        help="Locust *_stats.csv file or summary JSON from 'workload run'",
    )
    thresholds_parser.add_argument(
        "--thresholds",
        type=Path,
        help="Path to thresholds YAML file (default: THRESHOLDS_PATH)",
    )

    subparsers.add_parser("list", help="List registered scenarios")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def resolve_definition(
    args: argparse.Namespace, config_class: type[Config]
) -> ScenarioDefinition:
    """Pick the scenario and apply any pacing override from CLI or config."""
    definition = get_scenario(args.scenario or config_class.WORKLOAD_SCENARIO)

    pacing = getattr(args, "pacing", None)
    if pacing is None and config_class.WORKLOAD_PACING:
        pacing = config_class.WORKLOAD_PACING
    if pacing is not None:
        definition = definition.with_pacing(pacing)
    return definition


def _load_run_config(args: argparse.Namespace, config_class: type[Config]) -> RunConfig:
    return RunConfig.load(
        config_class,
        concurrency=args.vus,
        duration=args.duration,
        request_timeout=getattr(args, "timeout", None),
    )


def _print_run_summary(summary: RunSummary) -> None:
    data = summary.to_dict()
    print(f"Scenario: {data['scenario']} ({data['concurrency']} VUs, {data['duration']})")
    print("-" * 60)
    print(f"{'Iterations':<26}{data['iterations']:>12}")
    print(f"{'Failed iterations':<26}{data['failed_iterations']:>12}")
    print(f"{'Check ' + repr(data['check']):<26}")
    print(f"{'  passed':<26}{data['checks_passed']:>12}")
    print(f"{'  failed':<26}{data['checks_failed']:>12}")
    for kind, count in sorted(data["failures"].items()):
        print(f"{'  failure: ' + kind:<26}{count:>12}")
    print(f"{'Requests/s':<26}{data['requests_per_second']:>12.2f}")
    print(f"{'P95 latency (ms)':<26}{data['p95_ms']:>12.2f}")
    print("-" * 60)


def _cmd_run(args: argparse.Namespace, config_class: type[Config]) -> int:
    try:
        definition = resolve_definition(args, config_class)
        run_config = _load_run_config(args, config_class)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    thresholds = None
    if args.thresholds:
        try:
            thresholds = load_thresholds(args.thresholds)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            print(f"Threshold check failed: {exc}", file=sys.stderr)
            return EXIT_SCRIPT_ERROR

    host = args.host or config_class.TARGET_HOST

    if args.dry_run:
        print(
            f"{definition.name}: GET {definition.url(host)} "
            f"check={definition.check_name!r} expected={definition.expected_body!r} "
            f"vus={run_config.concurrency} duration={run_config.duration} "
            f"pacing={definition.pacing_seconds} timeout={run_config.request_timeout}"
        )
        return EXIT_PASS

    summary = run_workload(definition, host, run_config)
    _print_run_summary(summary)

    if args.summary_json:
        args.summary_json.parent.mkdir(parents=True, exist_ok=True)
        with args.summary_json.open("w", encoding="utf-8") as handle:
            json.dump(summary.to_dict(), handle, indent=2, ensure_ascii=False)
        logger.info("Run summary written to %s", args.summary_json)

    if thresholds is not None:
        try:
            report = evaluate(measurements_from_summary(summary), thresholds)
        except ValueError as exc:
            print(f"Threshold check failed: {exc}", file=sys.stderr)
            return EXIT_SCRIPT_ERROR
        print_summary(report)
        return report.exit_code

    return EXIT_PASS


def _cmd_locust_command(args: argparse.Namespace, config_class: type[Config]) -> int:
    try:
        definition = resolve_definition(args, config_class)
        run_config = _load_run_config(args, config_class)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    cmd = locust_command(
        run_config,
        definition,
        args.host or config_class.TARGET_HOST,
        csv_prefix=args.csv_prefix,
    )
    print(shlex.join(cmd))
    return EXIT_PASS


def _cmd_check_thresholds(args: argparse.Namespace, config_class: type[Config]) -> int:
    thresholds_path = args.thresholds or Path(config_class.THRESHOLDS_PATH)
    try:
        report = evaluate(measurements_from_file(args.stats), load_thresholds(thresholds_path))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Threshold check failed: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    print_summary(report)
    return report.exit_code


def _cmd_list(args: argparse.Namespace, config_class: type[Config]) -> int:
    for name in scenario_names():
        definition = SCENARIOS[name]
        print(
            f"{name:<12} GET {definition.path:<14} expects {definition.expected_body!r} "
            f"pacing={definition.pacing_seconds}"
        )
    return EXIT_PASS


COMMANDS = {
    "run": _cmd_run,
    "locust-command": _cmd_locust_command,
    "check-thresholds": _cmd_check_thresholds,
    "list": _cmd_list,
}


def main(argv: list[str] | None = None) -> int:
    """
    Entry point: dispatch to the selected subcommand.

    Returns:
        ``0`` on success, ``1`` when thresholds are breached, ``2`` on
        configuration or script errors.
    """
    args = parse_args(argv)
    config_class = get_config(args.env)
    setup_logging(args.log_level or config_class.LOG_LEVEL)
    return COMMANDS[args.command](args, config_class)


if __name__ == "__main__":
    raise SystemExit(main())
