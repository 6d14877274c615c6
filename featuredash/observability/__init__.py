"""Observability helpers."""

from featuredash.observability.otel import (
    initialize,
    shutdown,
    start_span,
    record_load,
    record_load_failure,
    record_query,
)

__all__ = [
    "initialize",
    "shutdown",
    "start_span",
    "record_load",
    "record_load_failure",
    "record_query",
]
