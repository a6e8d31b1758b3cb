"""Observability helpers for MapGPT."""

from __future__ import annotations

import logging
import time
from contextvars import ContextVar

import structlog
from prometheus_client import Counter, Histogram

_logging_options: tuple[int, bool] | None = None
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def _renderer(json_logs: bool):
    if json_logs:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(level: int | str | None = None, *, json_logs: bool = True) -> None:
    """Route structlog through stdlib logging.

    Without an explicit level the first configuration sticks; passing a level
    or renderer that differs from the current one reconfigures.
    """

    global _logging_options  # noqa: PLW0603 - module-level guard
    if level is None:
        if _logging_options is not None:
            return
        level = logging.INFO
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    options = (level, json_logs)
    if options == _logging_options:
        return
    logging.basicConfig(level=level, format="%(message)s", force=_logging_options is not None)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(json_logs),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _logging_options = options


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def get_logger(name: str = "mapgpt") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for pipeline stages."""

    requests = Counter(
        "mapgpt_chat_requests_total",
        "Chat requests by routing intent.",
        ["intent"],
    )
    failures = Counter(
        "mapgpt_chat_failures_total",
        "Chat requests that ended in an error envelope.",
        ["error_type"],
    )
    retrieval_latency = Histogram(
        "mapgpt_retrieval_duration_seconds",
        "Time spent scraping, searching or matching context.",
        ["intent"],
        buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    )
    retrieved_result_count = Histogram(
        "mapgpt_retrieved_result_count",
        "Number of ranked results spliced into a digest.",
        buckets=(0, 1, 2, 3, 5, 8, 13),
    )
    completion_latency = Histogram(
        "mapgpt_completion_duration_seconds",
        "Time spent waiting on the completion collaborator.",
        buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
    )

    @classmethod
    def observe_request(cls, intent: str) -> None:
        cls.requests.labels(intent=intent).inc()

    @classmethod
    def observe_failure(cls, error_type: str) -> None:
        cls.failures.labels(error_type=error_type).inc()

    @classmethod
    def observe_retrieval(cls, intent: str, duration_seconds: float) -> None:
        cls.retrieval_latency.labels(intent=intent).observe(duration_seconds)

    @classmethod
    def observe_results(cls, result_count: int) -> None:
        cls.retrieved_result_count.observe(result_count)

    @classmethod
    def observe_completion(cls, duration_seconds: float) -> None:
        cls.completion_latency.observe(duration_seconds)


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0
        self.duration = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        self.duration = time.perf_counter() - self._start
        if exc_type is None:
            self._callback(self.duration)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
