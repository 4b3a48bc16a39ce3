"""
Performance testing package (Locust-based).

Contains the Locust user classes that hand the workload definitions in
:mod:`workload.scenarios` to Locust as the external runner, plus the
thresholds file used by ``workload check-thresholds`` in CI.

Each user class issues one GET per iteration, evaluates the scenario's
named body check in-band via ``catch_response``, and then waits for the
scenario's pacing before the next iteration.

Key Concepts Demonstrated:
- One user class per data-driven scenario variant
- Tagged scenarios so CI can run one workload via ``--tags``
- CSV-based threshold gates for automated pass/fail decisions
"""
