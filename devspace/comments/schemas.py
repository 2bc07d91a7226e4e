"""Pydantic schemas for portfolio comments.

Request models validate the ``{name, email?, text}`` payload shared by
comments and replies. Response models use the camelCase wire format the
browser client and ``devspace.client`` consume (``_id``, ``createdAt``,
``likesCount``), and every endpoint wraps its payload in ``Envelope``.
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    TEXT_MAX_LENGTH,
    ItemComment,
    Reply,
)


EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

DEFAULT_LIMIT = 50


class CommentSort(str, Enum):
    """Sort parameter accepted by the list endpoint."""

    NEWEST = "-createdAt"
    OLDEST = "createdAt"

    @property
    def descending(self) -> bool:
        return self is CommentSort.NEWEST


# ==============================================================================
# Request Schemas
# ==============================================================================


def _clean_required(value: Any, empty_message: str, max_length: int, label: str) -> Any:
    if value is None:
        raise ValueError(empty_message)
    if not isinstance(value, str):
        return value
    value = value.strip()
    if not value:
        raise ValueError(empty_message)
    if len(value) > max_length:
        msg = f"{label} cannot exceed {max_length} characters!"
        raise ValueError(msg)
    return value


class CommentCreateRequest(BaseModel):
    """Request to post a comment on a portfolio item."""

    # Missing fields default to "" so the validators below report them
    name: str = Field("", max_length=NAME_MAX_LENGTH, validate_default=True)
    email: str | None = Field(None, max_length=EMAIL_MAX_LENGTH)
    text: str = Field("", max_length=TEXT_MAX_LENGTH, validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> Any:
        """Strip whitespace and require a display name."""
        return _clean_required(v, "Please provide your name!", NAME_MAX_LENGTH, "Name")

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> Any:
        """Strip whitespace and require a body."""
        return _clean_required(
            v, "Please provide a comment!", TEXT_MAX_LENGTH, "Comment"
        )

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: Any) -> Any:
        """Blank emails are dropped; others are lower-cased and shape-checked."""
        if v is None or not isinstance(v, str):
            return v
        v = v.strip().lower()
        if not v:
            return None
        if len(v) > EMAIL_MAX_LENGTH:
            msg = f"Email cannot exceed {EMAIL_MAX_LENGTH} characters!"
            raise ValueError(msg)
        if not EMAIL_PATTERN.match(v):
            msg = "Please provide a valid email address"
            raise ValueError(msg)
        return v


class ReplyCreateRequest(CommentCreateRequest):
    """Request to reply to a comment."""

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, v: Any) -> Any:
        """Strip whitespace and require a body."""
        return _clean_required(v, "Please provide a reply!", TEXT_MAX_LENGTH, "Reply")


# ==============================================================================
# Response Schemas
# ==============================================================================


class ReplyResponse(BaseModel):
    """A reply as sent over the wire."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    email: str | None = None
    text: str
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_reply(cls, reply: Reply) -> "ReplyResponse":
        return cls(
            id=str(reply.reply_id),
            name=reply.name,
            email=reply.email,
            text=reply.text,
            created_at=reply.created_at,
        )


class CommentResponse(BaseModel):
    """A comment with its replies as sent over the wire.

    ``liked`` reflects the requesting client; the browser and the store
    client patch ``likes``/``liked`` in place after a like toggle.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    item_id: str = Field(alias="itemId")
    name: str
    email: str | None = None
    text: str
    likes: int = Field(default=0, ge=0)
    liked: bool = False
    replies: list[ReplyResponse] = Field(default_factory=list)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_comment(
        cls, comment: ItemComment, viewer: str | None = None
    ) -> "CommentResponse":
        """Create response from an ItemComment entity.

        Args:
            comment: Stored comment
            viewer: Client identifier used to compute ``liked``
        """
        return cls(
            id=str(comment.comment_id),
            item_id=comment.item_id,
            name=comment.name,
            email=comment.email,
            text=comment.text,
            likes=comment.likes,
            liked=comment.is_liked_by(viewer),
            replies=[ReplyResponse.from_reply(reply) for reply in comment.replies],
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class PaginationResponse(BaseModel):
    """Server-side pagination summary for a comment listing."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total_comments: int = Field(alias="totalComments")
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationResponse":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_comments=total,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class CommentListData(BaseModel):
    """Payload of the list endpoint."""

    comments: list[CommentResponse]
    pagination: PaginationResponse


class CommentData(BaseModel):
    """Payload of the create-comment endpoint."""

    comment: CommentResponse


class ReplyData(BaseModel):
    """Payload of the reply endpoint."""

    reply: ReplyResponse


class LikeData(BaseModel):
    """Payload of the like-toggle endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    liked: bool
    likes_count: int = Field(alias="likesCount", ge=0)


DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Response envelope shared by every endpoint.

    A non-2xx status or ``success: false`` both mean failure; ``message`` is
    shown to the user when present.
    """

    success: bool = True
    message: str | None = None
    data: DataT | None = None
