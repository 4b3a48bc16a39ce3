"""
Data model for workload definitions.

This module defines the value types shared by the in-process runner,
the Locust users and the threshold gate:

- :class:`RunConfig`: concurrency and duration of a run, immutable
  once validated.
- :class:`Response`: the part of an HTTP response a check may look at.
- :class:`IterationResult`: the recorded outcome of one scenario
  iteration.

Duration strings follow the k6/Go convention (``"5m"``, ``"1h30m"``,
``"500ms"``); a bare number is read as seconds.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from requests.structures import CaseInsensitiveDict

from config import Config, get_config

# Matches k6's default per-request timeout.
DEFAULT_REQUEST_TIMEOUT = 60.0

_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 0.001,
}
# "ms" must be tried before "m" and "s".
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_FULL = re.compile(r"(?:\d+(?:\.\d+)?(?:ms|h|m|s))+")
_PLAIN_NUMBER = re.compile(r"\d+(?:\.\d+)?")

# Values accepted by ``parse_pacing`` to mean "no think time".
_PACING_DISABLED = {"none", "off", "0", ""}


class ConfigurationError(ValueError):
    """Raised when run parameters are invalid; fatal before any iteration."""


class FailureKind(str, Enum):
    """Why an iteration was recorded as failed."""

    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    CHECK = "check"


def parse_duration(value: Any) -> float:
    """
    Convert a duration value into seconds.

    Args:
        value: A duration string such as ``"5m"``, ``"1h30m"``,
            ``"10s"`` or ``"500ms"``, a numeric string, or an int/float
            number of seconds.

    Returns:
        The duration in seconds (always > 0).

    Raises:
        ConfigurationError: If the value is empty, malformed, negative
            or zero.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip() if value is not None else ""
        if _PLAIN_NUMBER.fullmatch(text):
            seconds = float(text)
        elif _DURATION_FULL.fullmatch(text):
            seconds = sum(
                float(amount) * _DURATION_UNITS[unit]
                for amount, unit in _DURATION_PART.findall(text)
            )
        else:
            raise ConfigurationError(f"Invalid duration: {value!r}")

    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigurationError(f"Duration must be greater than zero: {value!r}")
    return seconds


def parse_pacing(value: Any) -> float | None:
    """
    Parse a pacing (think-time) option.

    ``None``, ``""``, ``"none"``, ``"off"`` and ``0`` all disable pacing
    and return ``None``; anything else must be a valid duration.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value == 0:
        return None
    if isinstance(value, str) and value.strip().lower() in _PACING_DISABLED:
        return None
    return parse_duration(value)


def format_run_time(seconds: float) -> str:
    """Render seconds as a whole-second run time, e.g. ``"300s"``."""
    return f"{max(1, math.ceil(seconds))}s"


def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(f"{field_name} must be an integer, got {value!r}") from exc


def _parse_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{field_name} must be a number, got {value!r}") from exc


@dataclass(frozen=True)
class RunConfig:
    """
    Execution parameters consumed once by a runner before a run starts.

    Attributes:
        concurrency: Number of virtual users iterating in parallel.
        duration: Wall-clock length of the run as a duration string.
        request_timeout: Seconds to wait for each HTTP response.
    """

    concurrency: int
    duration: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def validate(self) -> RunConfig:
        """
        Check every field, returning ``self`` so calls can be chained.

        Raises:
            ConfigurationError: If concurrency is not an integer >= 1,
                the duration is malformed, or the timeout is not a
                positive number.
        """
        if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
            raise ConfigurationError(
                f"concurrency must be an integer, got {self.concurrency!r}"
            )
        if self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be >= 1, got {self.concurrency}")

        parse_duration(self.duration)

        timeout = self.request_timeout
        if (
            isinstance(timeout, bool)
            or not isinstance(timeout, (int, float))
            or not math.isfinite(timeout)
            or timeout <= 0
        ):
            raise ConfigurationError(f"request_timeout must be > 0, got {timeout!r}")
        return self

    @property
    def duration_seconds(self) -> float:
        return parse_duration(self.duration)

    @classmethod
    def load(cls, config_class: type[Config] | None = None, **overrides: Any) -> RunConfig:
        """
        Build and validate a RunConfig from a configuration class.

        Args:
            config_class: Source of defaults; resolved with
                :func:`config.get_config` when omitted.
            **overrides: ``concurrency``, ``duration`` or
                ``request_timeout`` values that take precedence over the
                configuration class.  ``None`` values are ignored.

        Returns:
            A validated, immutable RunConfig.
        """
        if config_class is None:
            config_class = get_config()

        raw: dict[str, Any] = {
            "concurrency": config_class.WORKLOAD_CONCURRENCY,
            "duration": config_class.WORKLOAD_DURATION,
            "request_timeout": config_class.REQUEST_TIMEOUT,
        }
        unknown = set(overrides) - set(raw)
        if unknown:
            raise ConfigurationError(f"Unknown run parameters: {', '.join(sorted(unknown))}")
        raw.update({key: value for key, value in overrides.items() if value is not None})

        return cls(
            concurrency=_parse_int(raw["concurrency"], "concurrency"),
            duration=str(raw["duration"]).strip(),
            request_timeout=_parse_float(raw["request_timeout"], "request_timeout"),
        ).validate()


def _decode_body(content: bytes, content_type: str, declared_encoding: str | None) -> str:
    # Without an explicit charset, requests guesses ISO-8859-1 for text/*,
    # which would mangle multi-byte bodies; treat undeclared bodies as UTF-8.
    encoding = declared_encoding if "charset=" in content_type.lower() else None
    try:
        return content.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Response:
    """Body, status and headers of one HTTP response."""

    body: str
    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_requests(cls, response: Any) -> Response:
        """Build a Response from a ``requests.Response`` (or Locust's subclass)."""
        headers = CaseInsensitiveDict(response.headers or {})
        body = _decode_body(
            response.content or b"",
            headers.get("Content-Type", ""),
            response.encoding,
        )
        return cls(body=body, status_code=response.status_code, headers=headers)


@dataclass(frozen=True)
class IterationResult:
    """
    Recorded outcome of a single scenario iteration.

    Attributes:
        scenario: Name of the scenario that ran.
        check_name: Name of the check that was evaluated.
        check_passed: Whether the check passed.
        elapsed_ms: Request latency in milliseconds (time until failure
            for transport errors).
        status_code: HTTP status, or ``None`` when no response arrived.
        failure: Why the iteration failed, or ``None`` on success.
        error: Human-readable failure detail.
    """

    scenario: str
    check_name: str
    check_passed: bool
    elapsed_ms: float
    status_code: int | None = None
    failure: FailureKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def request_failed(self) -> bool:
        """True for transport or status failures (as opposed to a check mismatch)."""
        return self.failure is not None and self.failure is not FailureKind.CHECK
