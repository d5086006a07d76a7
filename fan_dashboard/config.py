"""Configuration parsing from /etc/default/fan-dashboard and CLI arguments."""

import argparse
import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from dotenv import dotenv_values

from fan_dashboard.threshold import STATUS_RESET_DELAY, THRESHOLD_MAX, THRESHOLD_MIN

DEFAULT_CONFIG_PATH = "/etc/default/fan-dashboard"
DEFAULT_SERVER_URL = "http://localhost:5000"


def _parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="fan-dashboard",
        description="Live telemetry and threshold control for an IoT fan controller",
    )
    parser.add_argument(
        "--server-url",
        help="Base URL of the fan controller server (overrides config file)",
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        help="HTTP request timeout in seconds",
    )
    parser.add_argument(
        "--reset-delay",
        type=float,
        help="Seconds before an update success/error status returns to idle",
    )
    parser.add_argument(
        "--report-interval",
        type=float,
        help="Seconds between status log lines",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Log level (overrides config file)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        help=f"Apply this temperature threshold on startup ({THRESHOLD_MIN:.0f}-{THRESHOLD_MAX:.0f})",
    )
    return parser.parse_args(argv)


@dataclass
class Config:
    """Dashboard client configuration."""

    server_url: str = DEFAULT_SERVER_URL
    request_timeout: float = 5.0
    reset_delay: float = STATUS_RESET_DELAY
    report_interval: float = 10.0
    log_level: str = "INFO"
    debug: bool = False
    threshold: float | None = None

    def __post_init__(self) -> None:
        parsed = urlparse(self.server_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid server URL '{self.server_url}'. Must be http(s)://host[:port]")

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")

        if self.reset_delay <= 0:
            raise ValueError(f"Reset delay must be positive, got {self.reset_delay}")

        if self.report_interval <= 0:
            raise ValueError(f"Report interval must be positive, got {self.report_interval}")

        if self.threshold is not None and not (THRESHOLD_MIN <= self.threshold <= THRESHOLD_MAX):
            raise ValueError(
                f"Threshold must be {THRESHOLD_MIN:.0f}-{THRESHOLD_MAX:.0f}, got {self.threshold}"
            )

        if self.debug:
            self.log_level = "DEBUG"

    @classmethod
    def load(cls, argv: list[str] | None = None) -> "Config":
        """Load configuration from environment file, env vars, and CLI args.

        Priority (highest to lowest):
        1. CLI arguments
        2. Environment variables
        3. /etc/default/fan-dashboard file
        4. Dataclass defaults
        """
        file_env = {k: v for k, v in dotenv_values(DEFAULT_CONFIG_PATH).items() if v is not None}

        def env(key: str) -> str | None:
            if key in os.environ:
                return os.environ[key]
            return file_env.get(key)

        kwargs: dict[str, object] = {}

        if (v := env("SERVER_URL")) is not None:
            kwargs["server_url"] = v.strip()

        for key, field in (
            ("REQUEST_TIMEOUT", "request_timeout"),
            ("RESET_DELAY", "reset_delay"),
            ("REPORT_INTERVAL", "report_interval"),
        ):
            if (v := env(key)) is not None:
                try:
                    kwargs[field] = float(v)
                except ValueError:
                    pass

        if (v := env("LOG_LEVEL")) is not None:
            kwargs["log_level"] = v.upper()

        if (v := env("DEBUG")) is not None:
            kwargs["debug"] = v.lower() in ("true", "1", "yes")

        # CLI arguments override everything
        args = _parse_cli_args(argv)

        if args.server_url is not None:
            kwargs["server_url"] = args.server_url

        if args.request_timeout is not None:
            kwargs["request_timeout"] = args.request_timeout

        if args.reset_delay is not None:
            kwargs["reset_delay"] = args.reset_delay

        if args.report_interval is not None:
            kwargs["report_interval"] = args.report_interval

        if args.log_level is not None:
            kwargs["log_level"] = args.log_level

        if args.debug is True:
            kwargs["debug"] = True

        if args.threshold is not None:
            kwargs["threshold"] = args.threshold

        return cls(**kwargs)

    def setup_logging(self) -> None:
        """Configure logging based on this config."""
        logging.basicConfig(
            level=getattr(logging, self.log_level),
            format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
