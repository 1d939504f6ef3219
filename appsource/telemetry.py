"""Telemetry back-ends for API call scopes."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .interfaces import Telemetry, TelemetryScope

logger = logging.getLogger(__name__)


class LoggingTelemetryScope(TelemetryScope):
    def __init__(self, name: str, parameters: Dict[str, Any]) -> None:
        self.name = name
        self.parameters = parameters
        self.started_at = time.perf_counter()

    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started_at) * 1000, 2)

    def track_trace(self, message: str) -> None:
        logger.info(f"{self.name}: {message} ({self.elapsed_ms()} ms)")

    def track_exception(self, exc: BaseException) -> None:
        logger.error(
            f"{self.name} failed after {self.elapsed_ms()} ms: {exc}",
            exc_info=exc,
        )


class LoggingTelemetry(Telemetry):
    """Writes scope traces and exceptions to the standard logger."""

    @contextmanager
    def scope(
        self, name: str, parameters: Optional[Dict[str, Any]] = None
    ) -> Iterator[LoggingTelemetryScope]:
        scope = LoggingTelemetryScope(name, dict(parameters or {}))
        logger.debug(f"Opened telemetry scope {name} {scope.parameters}")
        try:
            yield scope
        finally:
            logger.debug(f"Closed telemetry scope {name}")


class OpenTelemetryScope(TelemetryScope):
    def __init__(self, span: Any) -> None:
        self._span = span

    def track_trace(self, message: str) -> None:
        from opentelemetry.trace import StatusCode

        self._span.add_event(message)
        self._span.set_status(StatusCode.OK)

    def track_exception(self, exc: BaseException) -> None:
        from opentelemetry.trace import StatusCode

        self._span.set_status(StatusCode.ERROR)
        self._span.record_exception(exc)


class OpenTelemetryTelemetry(Telemetry):
    """Opens one client span per API call on the configured tracer provider."""

    def __init__(self, tracer_name: str = "appsource") -> None:
        from opentelemetry import trace

        self._tracer = trace.get_tracer(tracer_name)

    @contextmanager
    def scope(
        self, name: str, parameters: Optional[Dict[str, Any]] = None
    ) -> Iterator[OpenTelemetryScope]:
        from opentelemetry.trace import SpanKind

        attributes = {
            key: value
            for key, value in (parameters or {}).items()
            if isinstance(value, (str, bool, int, float))
        }
        # Exceptions are reported through track_exception, not by the span itself.
        with self._tracer.start_as_current_span(
            name,
            kind=SpanKind.CLIENT,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            yield OpenTelemetryScope(span)


def build_telemetry(kind: str) -> Telemetry:
    if kind == "logging":
        return LoggingTelemetry()
    if kind == "opentelemetry":
        return OpenTelemetryTelemetry()
    raise ValueError(f"Unknown telemetry type: {kind}")
