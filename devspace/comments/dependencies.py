"""FastAPI dependencies for portfolio comments."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from devspace.config import get_settings
from devspace.core.logging import get_logger
from devspace.core.middleware import get_client_ip

from .service import CommentError, CommentService


logger = get_logger(__name__)


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state.

    Raises:
        HTTPException: 503 while the database is unavailable
    """
    app_state = request.app.state
    if not getattr(app_state, "comment_service", None):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database link lost. Please try again in a moment.",
        )
    return app_state.comment_service


async def get_client_identifier(request: Request) -> str:
    """Identify the caller for likes and rate limiting."""
    return get_client_ip(request, get_settings().trusted_proxy_hops)


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
ClientIdentifier = Annotated[str, Depends(get_client_identifier)]


def handle_comment_error(error: CommentError) -> HTTPException:
    """Convert comment errors to HTTP exceptions."""
    logger.info("comment_request_rejected", code=error.code, reason=error.message)
    status_map = {
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "invalid_comment_id": status.HTTP_400_BAD_REQUEST,
        "rate_limit_exceeded": status.HTTP_429_TOO_MANY_REQUESTS,
    }

    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=error.message,
    )
