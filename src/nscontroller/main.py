"""Process setup for the Supervisor Namespace controller.

Structured logging and the signal-aware runner shared by every CLI command.
The first SIGINT or SIGTERM sets the cancellation event, which abandons the
in-flight request or sleep so the operation reports how far it got. A second
signal cancels the operation task outright.
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TypeVar

T = TypeVar("T")

REDACTED = "***"
HANDLER_NAME = "nscontroller"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            log_data["exception"] = record.exc_text

        return json.dumps(log_data, default=str)


class SecretRedactionFilter(logging.Filter):
    """Replace known secret values wherever a record is rendered, tracebacks included."""

    def __init__(self, secrets: list[str]) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def _redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        record.msg = self._redact(record.getMessage())
        record.args = None
        for key, value in list(record.__dict__.items()):
            if key not in _RESERVED_RECORD_ATTRS and isinstance(value, str):
                setattr(record, key, self._redact(value))
        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            # Formatters reuse exc_text instead of formatting exc_info again
            record.exc_text = self._redact(record.exc_text)
        return True


def setup_logging(
    *, json_output: bool = True, level: int = logging.INFO, secrets: list[str] | None = None
) -> None:
    """Configure root logging.

    Args:
        json_output: Emit one JSON object per line; plain text otherwise.
        level: Root log level.
        secrets: Values scrubbed from every record (the API token).
    """
    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler.addFilter(SecretRedactionFilter(secrets or []))
    handler.set_name(HANDLER_NAME)

    root_logger = logging.getLogger()
    # Replace a handler installed by an earlier call
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from the HTTP stack
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


async def run_cancellable(operation: Callable[[asyncio.Event], Awaitable[T]]) -> T:
    """Run an operation with SIGINT/SIGTERM wired to its cancellation event.

    A second signal cancels the operation task, raising CancelledError.
    """
    logger = logging.getLogger(__name__)
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    task = asyncio.ensure_future(operation(cancel_event))

    def signal_handler(sig: signal.Signals) -> None:
        if cancel_event.is_set():
            logger.warning("Received second signal, aborting", extra={"signal": sig.name})
            task.cancel()
            return
        logger.info("Received signal, cancelling wait", extra={"signal": sig.name})
        cancel_event.set()

    installed: list[signal.Signals] = []
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread
            continue
        installed.append(sig)

    try:
        return await task
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
