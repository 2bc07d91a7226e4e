# Core infrastructure
from devspace.core.context import (
    clear_context,
    get_context,
    get_correlation_id,
    get_request_id,
    get_trace_id,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from devspace.core.logging import configure_structlog, get_logger
from devspace.core.middleware import RequestContextMiddleware, get_client_ip


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_client_ip",
    "get_context",
    "get_correlation_id",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "set_correlation_id",
    "set_request_id",
    "set_trace_id",
]
