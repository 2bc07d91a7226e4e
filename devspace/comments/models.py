"""Database models for portfolio item comments.

One row per top-level comment, partitioned by the portfolio item it belongs
to. Replies are stored inline as a list of frozen maps: they are a single
level deep and are always read together with their parent comment.

Likes are tracked per client identifier (IP address) in ``liked_by`` so a
second like from the same client removes the first.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


# Field limits shared by request validation and the client forms
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 200
TEXT_MAX_LENGTH = 500


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition by item_id: every read lists the comments of a single item
ITEM_COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.item_comments (
    item_id TEXT,
    comment_id UUID,
    name TEXT,
    email TEXT,
    avatar TEXT,
    text TEXT,
    likes INT,
    liked_by SET<TEXT>,
    replies LIST<FROZEN<MAP<TEXT, TEXT>>>,
    approved BOOLEAN,
    reported BOOLEAN,
    ip_address TEXT,
    user_agent TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((item_id), comment_id)
)
"""

COMMENTS_TABLES_CQL = [
    ITEM_COMMENTS_TABLE_CQL,
]


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps coming back from Cassandra."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Reply:
    """Second-level remark attached to a comment. Replies have no replies."""

    reply_id: UUID
    name: str
    email: str | None
    text: str
    created_at: datetime

    @classmethod
    def from_map(cls, data: dict[str, str]) -> "Reply":
        """Create Reply from a stored frozen map."""
        return cls(
            reply_id=UUID(data["reply_id"]),
            name=data.get("name") or "Anonymous",
            email=data.get("email") or None,
            text=data.get("text", ""),
            created_at=as_utc(datetime.fromisoformat(data["created_at"])),
        )

    def to_map(self) -> dict[str, str]:
        """Convert to the frozen map stored in the replies list."""
        data = {
            "reply_id": str(self.reply_id),
            "name": self.name,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }
        if self.email:
            data["email"] = self.email
        return data


@dataclass
class ItemComment:
    """Top-level comment on a portfolio item."""

    comment_id: UUID
    item_id: str
    name: str
    email: str | None
    text: str
    created_at: datetime
    updated_at: datetime
    avatar: str | None = None
    likes: int = 0
    liked_by: set[str] = field(default_factory=set)
    replies: list[Reply] = field(default_factory=list)
    approved: bool = True
    reported: bool = False
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_row(cls, row: Any) -> "ItemComment":
        """Create ItemComment from Cassandra row."""
        created_at = as_utc(row.created_at)
        return cls(
            comment_id=row.comment_id,
            item_id=row.item_id,
            name=row.name or "Anonymous",
            email=row.email,
            text=row.text or "",
            created_at=created_at,
            updated_at=as_utc(row.updated_at) if row.updated_at else created_at,
            avatar=row.avatar,
            likes=max(0, row.likes or 0),
            liked_by=set(row.liked_by or ()),
            replies=[Reply.from_map(dict(item)) for item in row.replies or ()],
            approved=True if row.approved is None else row.approved,
            reported=row.reported or False,
            ip_address=row.ip_address,
            user_agent=row.user_agent,
        )

    def is_liked_by(self, identifier: str | None) -> bool:
        """Check whether a client identifier currently likes this comment."""
        return identifier is not None and identifier in self.liked_by

    def toggle_like(self, identifier: str) -> bool:
        """Add or remove a like for ``identifier``.

        Returns:
            True if the comment is liked by ``identifier`` afterwards.
        """
        if identifier in self.liked_by:
            self.liked_by.discard(identifier)
            self.likes = max(0, self.likes - 1)
            liked = False
        else:
            self.liked_by.add(identifier)
            self.likes += 1
            liked = True
        self.updated_at = datetime.now(UTC)
        return liked


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_item_comment(
    item_id: str,
    name: str,
    text: str,
    email: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ItemComment:
    """Create a new, auto-approved comment."""
    now = datetime.now(UTC)
    return ItemComment(
        comment_id=uuid4(),
        item_id=item_id,
        name=name,
        email=email,
        text=text,
        created_at=now,
        updated_at=now,
        ip_address=ip_address,
        user_agent=user_agent,
    )


def create_reply(name: str, text: str, email: str | None = None) -> Reply:
    """Create a new reply."""
    return Reply(
        reply_id=uuid4(),
        name=name,
        email=email,
        text=text,
        created_at=datetime.now(UTC),
    )
