"""Comment service layer.

Business logic for portfolio item comments:
- Listing approved comments with sort and skip/limit pagination
- Posting comments and one-level replies
- Toggling likes per client identifier
- Per-client rate limiting (Redis, optional)
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from devspace.core.logging import get_logger
from devspace.core.redis import rate_limit_key

from .models import (
    ItemComment,
    Reply,
    create_item_comment,
    create_reply,
)
from .schemas import CommentSort


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentError(Exception):
    """Base comment error."""

    def __init__(self, message: str, code: str = "comment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CommentNotFoundError(CommentError):
    """Comment not found (or not approved) on the given item."""

    def __init__(self, message: str = "This comment doesn't exist!"):
        super().__init__(message, "comment_not_found")


class InvalidCommentIdError(CommentError):
    """Comment id is not a valid identifier."""

    def __init__(self, message: str = "The comment id provided is invalid!"):
        super().__init__(message, "invalid_comment_id")


class RateLimitExceededError(CommentError):
    """Client posted too many comments."""

    def __init__(self, message: str = "Too many comments, please slow down."):
        super().__init__(message, "rate_limit_exceeded")


def parse_comment_id(comment_id: str) -> UUID:
    """Parse a comment id from a URL path.

    Raises:
        InvalidCommentIdError: If the id is not a UUID
    """
    try:
        return UUID(comment_id)
    except ValueError as e:
        raise InvalidCommentIdError from e


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for portfolio item comments."""

    # Rate limits
    COMMENTS_PER_MINUTE = 10
    COMMENTS_PER_HOUR = 100

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        comments_per_minute: int | None = None,
        comments_per_hour: int | None = None,
    ):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.comments_per_minute = comments_per_minute or self.COMMENTS_PER_MINUTE
        self.comments_per_hour = comments_per_hour or self.COMMENTS_PER_HOUR
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.item_comments
            (item_id, comment_id, name, email, avatar, text, likes, liked_by,
             replies, approved, reported, ip_address, user_agent,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comments_by_item = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.item_comments
            WHERE item_id = ?
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.item_comments
            WHERE item_id = ? AND comment_id = ?
        """)

        self._append_reply = self.session.prepare(f"""
            UPDATE {self.keyspace}.item_comments
            SET replies = replies + ?, updated_at = ?
            WHERE item_id = ? AND comment_id = ?
        """)

        self._update_likes = self.session.prepare(f"""
            UPDATE {self.keyspace}.item_comments
            SET likes = ?, liked_by = ?, updated_at = ?
            WHERE item_id = ? AND comment_id = ?
        """)

    # ==========================================================================
    # Rate Limiting (Redis-based)
    # ==========================================================================

    async def check_rate_limit(self, identifier: str) -> bool:
        """Check if a client has exceeded the posting rate.

        Returns True if within limit, raises RateLimitExceededError otherwise.
        """
        if not self.redis:
            return True

        minute_count = await self.redis.get(rate_limit_key(identifier, "minute"))
        if minute_count and int(minute_count) >= self.comments_per_minute:
            raise RateLimitExceededError(
                "Too many comments per minute. Please wait a moment."
            )

        hour_count = await self.redis.get(rate_limit_key(identifier, "hour"))
        if hour_count and int(hour_count) >= self.comments_per_hour:
            raise RateLimitExceededError("Hourly comment limit reached.")

        return True

    async def increment_rate_limit(self, identifier: str) -> None:
        """Increment rate limit counters."""
        if not self.redis:
            return

        key_minute = rate_limit_key(identifier, "minute")
        key_hour = rate_limit_key(identifier, "hour")

        pipe = self.redis.pipeline()
        pipe.incr(key_minute)
        pipe.expire(key_minute, 60)
        pipe.incr(key_hour)
        pipe.expire(key_hour, 3600)
        await pipe.execute()

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_comment(self, item_id: str, comment_id: UUID) -> ItemComment:
        """Get an approved comment on an item.

        Raises:
            CommentNotFoundError: If missing or not approved
        """
        result = await self.session.aexecute(self._get_comment, [item_id, comment_id])
        row = result.one()
        if row is None:
            raise CommentNotFoundError

        comment = ItemComment.from_row(row)
        if not comment.approved:
            raise CommentNotFoundError
        return comment

    async def list_comments(
        self,
        item_id: str,
        sort: CommentSort = CommentSort.NEWEST,
        limit: int = 50,
        page: int = 1,
    ) -> tuple[list[ItemComment], int]:
        """List approved comments for an item.

        Items hold few comments, so the whole partition is read and ordered
        here rather than through a clustering order.

        Returns:
            The requested page of comments and the total approved count.
        """
        rows = await self.session.aexecute(self._get_comments_by_item, [item_id])
        comments = [ItemComment.from_row(row) for row in rows]
        comments = [comment for comment in comments if comment.approved]
        comments.sort(
            key=lambda c: (c.created_at, str(c.comment_id)), reverse=sort.descending
        )

        skip = (page - 1) * limit
        return comments[skip : skip + limit], len(comments)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_comment(
        self,
        item_id: str,
        name: str,
        text: str,
        email: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ItemComment:
        """Create a new comment on an item.

        Text is stored as typed; it is escaped when rendered.
        """
        identifier = ip_address or "anonymous"
        await self.check_rate_limit(identifier)

        comment = create_item_comment(
            item_id=item_id,
            name=name,
            text=text,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        await self.session.aexecute(
            self._insert_comment,
            [
                comment.item_id,
                comment.comment_id,
                comment.name,
                comment.email,
                comment.avatar,
                comment.text,
                comment.likes,
                comment.liked_by,
                [],
                comment.approved,
                comment.reported,
                comment.ip_address,
                comment.user_agent,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.increment_rate_limit(identifier)

        logger.info(
            "comment_created",
            item_id=item_id,
            comment_id=str(comment.comment_id),
        )
        return comment

    async def add_reply(
        self,
        item_id: str,
        comment_id: UUID,
        name: str,
        text: str,
        email: str | None = None,
        ip_address: str | None = None,
    ) -> Reply:
        """Append a reply to an approved comment.

        Raises:
            CommentNotFoundError: If the parent comment does not exist
        """
        identifier = ip_address or "anonymous"
        await self.check_rate_limit(identifier)

        comment = await self.get_comment(item_id, comment_id)
        reply = create_reply(name=name, text=text, email=email)

        await self.session.aexecute(
            self._append_reply,
            [[reply.to_map()], reply.created_at, item_id, comment.comment_id],
        )
        await self.increment_rate_limit(identifier)

        logger.info(
            "comment_reply_created",
            item_id=item_id,
            comment_id=str(comment_id),
            reply_id=str(reply.reply_id),
        )
        return reply

    async def toggle_like(
        self,
        item_id: str,
        comment_id: UUID,
        identifier: str,
    ) -> tuple[bool, int]:
        """Like or unlike a comment on behalf of a client.

        Returns:
            Whether the client likes the comment now, and the new like count.
        """
        comment = await self.get_comment(item_id, comment_id)
        liked = comment.toggle_like(identifier)

        await self.session.aexecute(
            self._update_likes,
            [
                comment.likes,
                comment.liked_by,
                datetime.now(UTC),
                item_id,
                comment.comment_id,
            ],
        )

        logger.info(
            "comment_like_toggled",
            item_id=item_id,
            comment_id=str(comment_id),
            liked=liked,
            likes=comment.likes,
        )
        return liked, comment.likes
