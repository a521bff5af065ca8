"""Settings management with validation.

Connection and timing settings are validated at load time so that a
misconfigured controller fails before any control-plane call is made.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path


class ConfigurationError(Exception):
    """Raised when settings validation fails."""

    pass


# Timing constants with documented bounds
DEFAULT_POLL_INTERVAL_SECONDS = 5
MIN_POLL_INTERVAL_SECONDS = 1
MAX_POLL_INTERVAL_SECONDS = 300

DEFAULT_DELETE_TIMEOUT_SECONDS = 1200  # 20 minutes
MIN_WAIT_TIMEOUT_SECONDS = 10
MAX_WAIT_TIMEOUT_SECONDS = 86400

DEFAULT_REQUEST_TIMEOUT_SECONDS = 60
MAX_TRANSPORT_RETRIES = 3

# Local state limits
MAX_STATE_FILE_SIZE_BYTES = 5 * 1024 * 1024
MAX_DECLARED_CONFIG_SIZE_BYTES = 1024 * 1024

DEFAULT_STATE_FILE = "supervisor-namespaces.state.yaml"
DEFAULT_IMPORT_SEPARATOR = "."

# Input validation patterns
VALID_SERVER_URL_PATTERN = r"^https?://[^/\s]+"


@dataclass(frozen=True)
class Settings:
    """Controller settings loaded from environment variables.

    All fields are validated at construction time. Invalid settings raise
    ConfigurationError immediately rather than failing mid-operation.
    """

    # Required fields
    server_url: str
    api_token: str

    # Connection
    allow_insecure: bool = False
    import_separator: str = DEFAULT_IMPORT_SEPARATOR

    # Timing
    poll_interval_seconds: int = DEFAULT_POLL_INTERVAL_SECONDS
    create_timeout_seconds: int | None = None
    delete_timeout_seconds: int = DEFAULT_DELETE_TIMEOUT_SECONDS
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS

    # Local state
    state_file: Path = field(default_factory=lambda: Path(DEFAULT_STATE_FILE))

    # Logging
    enable_json_logging: bool = True

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        errors: list[str] = []

        if not self.server_url:
            errors.append("VCFA_URL is required")
        elif not re.match(VALID_SERVER_URL_PATTERN, self.server_url):
            errors.append(f"VCFA_URL must be an absolute http(s) URL: {self.server_url}")

        if not self.api_token:
            errors.append("VCFA_API_TOKEN is required")

        if len(self.import_separator) != 1 or self.import_separator.isalnum():
            errors.append(
                "VCFA_IMPORT_SEPARATOR must be a single non-alphanumeric character: "
                f"{self.import_separator!r}"
            )
        elif self.import_separator == "-":
            # Hyphens are valid inside project and namespace names
            errors.append("VCFA_IMPORT_SEPARATOR cannot be '-'")

        if not (
            MIN_POLL_INTERVAL_SECONDS <= self.poll_interval_seconds <= MAX_POLL_INTERVAL_SECONDS
        ):
            errors.append(
                f"POLL_INTERVAL must be between {MIN_POLL_INTERVAL_SECONDS} "
                f"and {MAX_POLL_INTERVAL_SECONDS} seconds"
            )

        for key, value in (
            ("CREATE_TIMEOUT", self.create_timeout_seconds),
            ("DELETE_TIMEOUT", self.delete_timeout_seconds),
        ):
            if value is None:
                continue
            if not (MIN_WAIT_TIMEOUT_SECONDS <= value <= MAX_WAIT_TIMEOUT_SECONDS):
                errors.append(
                    f"{key} must be between {MIN_WAIT_TIMEOUT_SECONDS} "
                    f"and {MAX_WAIT_TIMEOUT_SECONDS} seconds"
                )

        if self.request_timeout_seconds < 1:
            errors.append("REQUEST_TIMEOUT must be at least 1 second")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def create_wait_timeout_seconds(self) -> int:
        """Timeout for the create wait; falls back to the delete timeout."""
        if self.create_timeout_seconds is None:
            return self.delete_timeout_seconds
        return self.create_timeout_seconds

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables.

        Environment Variables:
            VCFA_URL: Base URL of the VCF Automation endpoint (required)
            VCFA_API_TOKEN: Bearer token for the CCI API (required)
            VCFA_ALLOW_INSECURE: If "true", skip TLS verification (default: false)
            VCFA_IMPORT_SEPARATOR: Separator in import keys (default: ".")
            POLL_INTERVAL: Seconds between phase polls (default: 5)
            CREATE_TIMEOUT: Create wait timeout in seconds (default: DELETE_TIMEOUT)
            DELETE_TIMEOUT: Delete wait timeout in seconds (default: 1200)
            REQUEST_TIMEOUT: Per-request timeout in seconds (default: 60)
            STATE_FILE: Path to the local state file
            ENABLE_JSON_LOGGING: Emit JSON logs to stdout (default: true)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_optional_int(key: str) -> int | None:
            value = os.environ.get(key)
            if not value:
                return None
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        return cls(
            server_url=os.environ.get("VCFA_URL", "").rstrip("/"),
            api_token=os.environ.get("VCFA_API_TOKEN", ""),
            allow_insecure=get_bool("VCFA_ALLOW_INSECURE", False),
            import_separator=os.environ.get("VCFA_IMPORT_SEPARATOR", DEFAULT_IMPORT_SEPARATOR),
            poll_interval_seconds=get_int("POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS),
            create_timeout_seconds=get_optional_int("CREATE_TIMEOUT"),
            delete_timeout_seconds=get_int("DELETE_TIMEOUT", DEFAULT_DELETE_TIMEOUT_SECONDS),
            request_timeout_seconds=get_int("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS),
            state_file=Path(os.environ.get("STATE_FILE", DEFAULT_STATE_FILE)),
            enable_json_logging=get_bool("ENABLE_JSON_LOGGING", True),
        )
