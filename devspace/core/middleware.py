"""Request middleware for context management and logging."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from devspace.core.context import (
    clear_context,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from devspace.core.logging import get_logger


logger = get_logger(__name__)

ANONYMOUS_CLIENT = "anonymous"


def get_client_ip(request: Request, trusted_hops: int = 1) -> str:
    """Resolve the caller address behind ``trusted_hops`` reverse proxies.

    Each trusted proxy appends the address it received the request from, so
    the client is the entry ``trusted_hops`` from the right of
    ``X-Forwarded-For``. Entries further left are set by the caller and are
    ignored. With no trusted proxies only the socket peer is used.

    Used as the identity for comment likes and rate limits, so it falls back
    to a shared ``anonymous`` identifier when nothing is known.
    """
    if trusted_hops > 0:
        forwarded_for = request.headers.get("x-forwarded-for", "")
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        if hops:
            return hops[max(len(hops) - trusted_hops, 0)]

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    if request.client:
        return request.client.host

    return ANONYMOUS_CLIENT


def extract_traceparent(traceparent: str | None) -> str | None:
    """Extract the trace ID from a W3C ``traceparent`` header.

    Format: {version}-{trace-id}-{parent-id}-{trace-flags}
    """
    if not traceparent:
        return None

    parts = traceparent.split("-")
    if len(parts) >= 2:
        return parts[1]

    return None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Set up per-request logging context and log request timing."""

    REQUEST_ID_HEADER = "X-Request-ID"
    TRACE_ID_HEADER = "X-Trace-ID"
    CORRELATION_ID_HEADER = "X-Correlation-ID"
    TRACEPARENT_HEADER = "traceparent"

    def __init__(
        self,
        app: ASGIApp,
        log_requests: bool = True,
        exclude_paths: list[str] | None = None,
        trusted_proxy_hops: int = 1,
    ) -> None:
        super().__init__(app)
        self.log_requests = log_requests
        self.exclude_paths = exclude_paths or []
        self.trusted_proxy_hops = trusted_proxy_hops

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and set up context."""
        start_time = time.perf_counter()

        request_id = set_request_id(request.headers.get(self.REQUEST_ID_HEADER))
        trace_id = request.headers.get(self.TRACE_ID_HEADER) or extract_traceparent(
            request.headers.get(self.TRACEPARENT_HEADER)
        )
        if trace_id:
            set_trace_id(trace_id)
        correlation_id = request.headers.get(self.CORRELATION_ID_HEADER)
        if correlation_id:
            set_correlation_id(correlation_id)

        request.state.request_id = request_id

        should_log = self.log_requests and not self._should_exclude(request.url.path)
        if should_log:
            logger.info(
                "request_started",
                method=request.method,
                path=request.url.path,
                query=str(request.query_params) if request.query_params else None,
                ip_address=get_client_ip(request, self.trusted_proxy_hops),
                user_agent=request.headers.get("user-agent"),
            )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            if should_log:
                log_method = (
                    logger.warning if response.status_code >= 400 else logger.info
                )
                log_method(
                    "request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 2),
                )

            response.headers[self.REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
            )
            raise

        finally:
            clear_context()

    def _should_exclude(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.exclude_paths)


__all__ = [
    "ANONYMOUS_CLIENT",
    "RequestContextMiddleware",
    "extract_traceparent",
    "get_client_ip",
]
