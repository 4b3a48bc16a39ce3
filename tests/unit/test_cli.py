"""
Unit tests for the ``workload`` command line and Locust command builder.

The ``run`` subcommand is exercised with ``run_workload`` monkeypatched
so no request ever leaves the process.
"""

import json
import shlex

import pytest

from workload import cli
from workload.locust_support import DEFAULT_LOCUSTFILE, locust_command
from workload.models import ConfigurationError, FailureKind, IterationResult, RunConfig
from workload.runner import RunSummary
from workload.scenarios import HELLO, USER_QUERY


pytestmark = pytest.mark.unit


def _fake_summary(definition, config, failed=0, passed=4):
    summary = RunSummary(
        definition.name, definition.check_name, config.concurrency, config.duration
    )
    for _ in range(passed):
        summary.record(IterationResult(definition.name, definition.check_name, True, 5.0, 200))
    for _ in range(failed):
        summary.record(
            IterationResult(
                definition.name, definition.check_name, False, 5.0, 200, FailureKind.CHECK
            )
        )
    summary.started_at, summary.finished_at = 100.0, 101.0
    return summary


@pytest.fixture
def captured_run(monkeypatch):
    """Replace run_workload with a recorder returning a canned summary."""
    captured = {}

    def _fake_run_workload(definition, host, run_config):
        captured.update(definition=definition, host=host, run_config=run_config)
        return _fake_summary(definition, run_config, failed=captured.get("failed", 0))

    monkeypatch.setattr(cli, "run_workload", _fake_run_workload)
    return captured


# -----------------------------------------------------------------------------
# locust_command
# -----------------------------------------------------------------------------

def test_locust_command_maps_run_config_to_flags():
    cmd = locust_command(RunConfig(concurrency=1000, duration="5m"), HELLO, "http://127.0.0.1:10000")

    assert cmd == [
        "locust",
        "-f",
        str(DEFAULT_LOCUSTFILE),
        "--headless",
        "-u",
        "1000",
        "-r",
        "1000",
        "--run-time",
        "300s",
        "--host",
        "http://127.0.0.1:10000",
        "--tags",
        "hello",
    ]


def test_locust_command_with_csv_prefix():
    cmd = locust_command(
        RunConfig(concurrency=5, duration="1500ms"),
        USER_QUERY,
        "http://target.test",
        csv_prefix="results/user",
    )

    assert cmd[cmd.index("--run-time") + 1] == "2s"
    assert cmd[cmd.index("--tags") + 1] == "user"
    assert cmd[-3:] == ["--csv", "results/user", "--only-summary"]


def test_locust_command_validates_config():
    with pytest.raises(ConfigurationError):
        locust_command(RunConfig(concurrency=0, duration="5m"), HELLO, "http://target.test")


def test_default_locustfile_exists():
    assert DEFAULT_LOCUSTFILE.is_file()


# -----------------------------------------------------------------------------
# CLI
# -----------------------------------------------------------------------------

def test_list_prints_registered_scenarios(capsys):
    assert cli.main(["list"]) == 0

    output = capsys.readouterr().out
    assert "hello" in output
    assert "user-query" in output


def test_run_dry_run_validates_without_requests(capsys, captured_run):
    exit_code = cli.main(
        ["--env", "testing", "run", "--scenario", "hello", "--vus", "7", "--duration", "1m", "--dry-run"]
    )

    assert exit_code == 0
    assert captured_run == {}
    output = capsys.readouterr().out
    assert "GET http://target.test/hello" in output
    assert "vus=7" in output


def test_run_uses_config_defaults_and_overrides(captured_run):
    exit_code = cli.main(
        ["--env", "testing", "run", "--scenario", "user-query", "--host", "http://other.test", "--vus", "3"]
    )

    assert exit_code == 0
    assert captured_run["host"] == "http://other.test"
    assert captured_run["run_config"].concurrency == 3
    assert captured_run["run_config"].duration == "1s"
    assert captured_run["definition"].path == "/api/user/1"


def test_run_testing_config_disables_pacing(captured_run):
    cli.main(["--env", "testing", "run", "--scenario", "hello"])

    assert captured_run["definition"].pacing_seconds is None


def test_run_pacing_flag_overrides_scenario(captured_run):
    cli.main(["--env", "testing", "run", "--scenario", "user-query", "--pacing", "2s"])

    assert captured_run["definition"].pacing_seconds == 2.0


@pytest.mark.parametrize(
    "extra",
    [["--vus", "0"], ["--vus", "many"], ["--duration", "forever"], ["--timeout", "-1"], ["--pacing", "soon"]],
)
def test_run_configuration_errors_exit_2(capsys, captured_run, extra):
    exit_code = cli.main(["--env", "testing", "run", "--scenario", "hello", *extra])

    assert exit_code == 2
    assert captured_run == {}
    assert "Configuration error" in capsys.readouterr().err


def test_run_writes_summary_json(tmp_path, captured_run):
    summary_path = tmp_path / "out" / "summary.json"

    exit_code = cli.main(
        ["--env", "testing", "run", "--scenario", "user-query", "--summary-json", str(summary_path)]
    )

    assert exit_code == 0
    data = json.loads(summary_path.read_text(encoding="utf-8"))
    assert data["scenario"] == "user-query"
    assert data["checks_passed"] == 4


def test_run_with_thresholds_breach_exits_1(tmp_path, captured_run):
    captured_run["failed"] = 4
    thresholds = tmp_path / "thresholds.yml"
    thresholds.write_text(
        "max_error_rate_percent: 1\nmax_p95_ms: 500\nmax_check_failure_percent: 1\n",
        encoding="utf-8",
    )

    exit_code = cli.main(
        ["--env", "testing", "run", "--scenario", "hello", "--thresholds", str(thresholds)]
    )

    assert exit_code == 1


@pytest.mark.parametrize(
    "content",
    [None, "- just\n- a list\n", "max_p95_ms: 500\n"],
    ids=["missing", "not-a-mapping", "incomplete"],
)
def test_run_rejects_bad_thresholds_before_any_request(tmp_path, capsys, captured_run, content):
    thresholds = tmp_path / "thresholds.yml"
    if content is not None:
        thresholds.write_text(content, encoding="utf-8")

    exit_code = cli.main(
        ["--env", "testing", "run", "--scenario", "hello", "--thresholds", str(thresholds)]
    )

    assert exit_code == 2
    assert captured_run == {}
    assert "Threshold check failed" in capsys.readouterr().err


def test_locust_command_subcommand_prints_shell_line(capsys):
    exit_code = cli.main(
        ["--env", "testing", "locust-command", "--scenario", "user-query", "--vus", "10", "--duration", "30s"]
    )

    assert exit_code == 0
    argv = shlex.split(capsys.readouterr().out.strip())
    assert argv[0] == "locust"
    assert argv[argv.index("-u") + 1] == "10"
    assert argv[argv.index("--run-time") + 1] == "30s"
    assert argv[argv.index("--tags") + 1] == "user"


def test_check_thresholds_passes_on_good_stats(tmp_path, capsys):
    stats = tmp_path / "run_stats.csv"
    stats.write_text(
        "Type,Name,Request Count,Failure Count,95%\n,Aggregated,100,0,20\n",
        encoding="utf-8",
    )

    exit_code = cli.main(["--env", "testing", "check-thresholds", "--stats", str(stats)])

    assert exit_code == 0
    assert "Overall: PASS" in capsys.readouterr().out


def test_check_thresholds_missing_file_exits_2(tmp_path, capsys):
    exit_code = cli.main(
        ["--env", "testing", "check-thresholds", "--stats", str(tmp_path / "missing.csv")]
    )

    assert exit_code == 2
    assert "Threshold check failed" in capsys.readouterr().err


def test_check_thresholds_non_object_summary_exits_2(tmp_path, capsys):
    summary = tmp_path / "summary.json"
    summary.write_text("[1, 2, 3]", encoding="utf-8")

    exit_code = cli.main(["--env", "testing", "check-thresholds", "--stats", str(summary)])

    assert exit_code == 2
    assert "JSON object" in capsys.readouterr().err
