"""
app/core/tracing.py

Purpose: Spans for storage calls

- Spans are Logfire (OpenTelemetry) spans; nesting follows the running task
- TraceContext carries the caller's B3 ids and is passed explicitly into
  every storage operation, so they end up on each span and log line
- configure_tracing() is called once at startup
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

import logfire

from app.core.config import Settings, settings
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TraceContext:
    """The upstream trace a request belongs to, if the caller sent one."""

    trace_id: Optional[str] = None
    parent_span_id: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "TraceContext":
        trace_id = headers.get("x-b3-traceid") or headers.get("X-B3-TraceId")
        if not trace_id:
            return cls()
        parent = headers.get("x-b3-spanid") or headers.get("X-B3-SpanId")
        return cls(trace_id=trace_id, parent_span_id=parent)

    def span_attributes(self) -> Dict[str, str]:
        attributes = {}
        if self.trace_id:
            attributes["b3.trace_id"] = self.trace_id
        if self.parent_span_id:
            attributes["b3.parent_span_id"] = self.parent_span_id
        return attributes

    def log_extra(self, **fields: Any) -> Dict[str, Any]:
        """Fields to pass as `extra=` so formatters can print the trace."""
        if self.trace_id:
            fields["trace_id"] = self.trace_id
        return fields


@contextmanager
def start_span(name: str, ctx: Optional[TraceContext] = None, **tags: Any) -> Iterator[logfire.LogfireSpan]:
    """
    Opens a span tagged with `tags` and the caller's trace ids.

    Failures are recorded on the span by Logfire, logged here, and
    re-raised unchanged.
    """
    ctx = ctx or TraceContext()
    with logfire.span(name, **ctx.span_attributes(), **tags) as span:
        try:
            yield span
        except Exception as e:
            logger.warning(f"{name} failed: {e}", extra=ctx.log_extra(span=name, error=str(e)))
            raise


def configure_tracing(config: Optional[Settings] = None) -> None:
    """
    Sets up Logfire for this process.

    Spans are only shipped when LOGFIRE_TOKEN is set; otherwise they stay
    in-process and cost next to nothing.
    """
    config = config or settings

    logfire.configure(
        token=config.LOGFIRE_TOKEN,
        send_to_logfire="if-token-present",
        service_name="user",
        service_version="1.0.0",
        environment=config.ENVIRONMENT,
        console=False,
    )

    if not config.LOGFIRE_TOKEN:
        logger.info("LOGFIRE_TOKEN not set, spans are not exported")
        return

    # Forward application logs alongside the spans
    logging_handler = logfire.LogfireLoggingHandler()
    logging.getLogger().addHandler(logging_handler)
    logger.info("Logfire tracing initialized")
