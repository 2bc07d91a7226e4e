"""Portfolio item comments.

Provides the comment/reply/like data model and its API:
- One-level replies stored with their parent comment
- Per-client like toggling
- Rate limiting of posts per client

Note: Router is not exported here to avoid circular imports.
Import directly from devspace.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, ItemComment, Reply
from .service import (
    CommentError,
    CommentNotFoundError,
    CommentService,
    RateLimitExceededError,
)


__all__ = [
    "COMMENTS_TABLES_CQL",
    "CommentError",
    "CommentNotFoundError",
    "CommentService",
    "ItemComment",
    "RateLimitExceededError",
    "Reply",
]
