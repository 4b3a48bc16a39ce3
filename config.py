"""
Workload configuration module.

This module defines configuration classes for different environments
(development, testing, production). Configuration values are loaded
from environment variables with defaults that reproduce the reference
load profile (1000 virtual users for five minutes against a local
target on port 10000).

Values are kept as strings here and parsed when a
:class:`~workload.models.RunConfig` is built, so that a malformed
environment variable surfaces as a ``ConfigurationError`` at load time
instead of an import-time crash.
"""

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration with default settings."""

    # Root URL of the system under test; scenario paths are appended to it.
    TARGET_HOST: str = os.environ.get("TARGET_HOST", "http://127.0.0.1:10000")

    WORKLOAD_SCENARIO: str = os.environ.get("WORKLOAD_SCENARIO", "hello")
    WORKLOAD_CONCURRENCY: str = os.environ.get("WORKLOAD_CONCURRENCY", "1000")
    WORKLOAD_DURATION: str = os.environ.get("WORKLOAD_DURATION", "5m")

    # Empty means "use the scenario's own pacing"; "none" disables it.
    WORKLOAD_PACING: str = os.environ.get("WORKLOAD_PACING", "")

    # Per-request timeout in seconds.
    REQUEST_TIMEOUT: str = os.environ.get("REQUEST_TIMEOUT", "60")

    THRESHOLDS_PATH: str = os.environ.get(
        "THRESHOLDS_PATH",
        str(BASE_DIR / "tests" / "performance" / "thresholds.yml"),
    )

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Bind address of the bundled target application.
    TARGET_BIND_HOST: str = os.environ.get("TARGET_BIND_HOST", "127.0.0.1")
    TARGET_PORT: str = os.environ.get("TARGET_PORT", "10000")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    # Small, fast runs so suites never generate real load.
    WORKLOAD_CONCURRENCY: str = os.environ.get("TEST_WORKLOAD_CONCURRENCY", "2")
    WORKLOAD_DURATION: str = os.environ.get("TEST_WORKLOAD_DURATION", "1s")
    WORKLOAD_PACING: str = os.environ.get("TEST_WORKLOAD_PACING", "none")
    REQUEST_TIMEOUT: str = os.environ.get("TEST_REQUEST_TIMEOUT", "2")
    TARGET_HOST: str = os.environ.get("TEST_TARGET_HOST", "http://target.test")


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": ProductionConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses the WORKLOAD_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("WORKLOAD_ENV", "production")
    return config.get(env, config["default"])
