"""Central logging configuration utilities.

A single composition-root driven `configure_logging` wires separate
stdout/stderr sinks and injects a correlation id into all log records.
Adapters and core code never mutate global logging; they only emit via
`LoggingPort`. Uvicorn is kept from reconfiguring by passing
`log_config=None` in `main`.

The correlation id is the per-request id set by the web adapter, replaced by
the remote execution id as soon as a submission returns one, so that the
submit, poll and resume lines of one agent run can be grepped together.
"""

from __future__ import annotations

import contextvars
import logging
import sys
from typing import Optional

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default="-"
)

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(correlation_id)s: %(message)s"


def coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    key = str(level).upper().strip()
    numeric = logging.getLevelName(key)
    return numeric if isinstance(numeric, int) else logging.INFO


class _CorrelationIdFilter(logging.Filter):
    """Inject correlation id from contextvar into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple
        record.correlation_id = correlation_id_var.get()
        return True


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover
        return record.levelno <= self.max_level


def configure_logging(
    level: int | str | None = None,
    fmt: Optional[str] = None,
    disable_uvicorn_access: bool = False,
) -> None:
    """Configure root logger with separate stdout/stderr sinks & correlation id.

    Access log suppression is achieved by raising the level of
    `uvicorn.access`.
    """
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt or DEFAULT_FORMAT)
    cid_filter = _CorrelationIdFilter()

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Clear existing handlers to avoid duplication on reload
    for handler in list(root.handlers):
        root.removeHandler(handler)

    # stdout handler for DEBUG/INFO
    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.addFilter(cid_filter)
    stdout_handler.setFormatter(formatter)

    # stderr handler for WARNING+
    stderr_handler = logging.StreamHandler(stream=sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.addFilter(cid_filter)
    stderr_handler.setFormatter(formatter)

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)

    if disable_uvicorn_access:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger("agentrun").debug(
        "Logging configured level=%s disable_uvicorn_access=%s",
        numeric_level,
        disable_uvicorn_access,
    )
