"""Tests for comment request and response schemas."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError

from devspace.comments.models import create_item_comment, create_reply
from devspace.comments.schemas import (
    CommentCreateRequest,
    CommentResponse,
    Envelope,
    LikeData,
    PaginationResponse,
    ReplyCreateRequest,
)


class TestCommentCreateRequest:
    def test_strips_fields(self):
        request = CommentCreateRequest(name="  Ada  ", text="  Hello there  ")
        assert request.name == "Ada"
        assert request.text == "Hello there"
        assert request.email is None

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_name_required(self, name):
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(name=name, text="Hello")
        assert "Please provide your name!" in str(exc_info.value)

    def test_absent_fields_use_custom_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest.model_validate({})
        messages = [err["msg"] for err in exc_info.value.errors()]
        assert messages == [
            "Value error, Please provide your name!",
            "Value error, Please provide a comment!",
        ]

    def test_text_required(self):
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(name="Ada", text="   ")
        assert "Please provide a comment!" in str(exc_info.value)

    def test_text_limit(self):
        CommentCreateRequest(name="Ada", text="x" * 500)
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(name="Ada", text="x" * 501)
        assert "Comment cannot exceed 500 characters!" in str(exc_info.value)

    def test_name_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(name="n" * 101, text="Hello")
        assert "Name cannot exceed 100 characters!" in str(exc_info.value)

    def test_email_normalized(self):
        request = CommentCreateRequest(
            name="Ada", text="Hello", email="  Ada@Example.COM "
        )
        assert request.email == "ada@example.com"

    def test_blank_email_dropped(self):
        request = CommentCreateRequest(name="Ada", text="Hello", email="   ")
        assert request.email is None

    def test_invalid_email(self):
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(name="Ada", text="Hello", email="not-an-email")
        assert "Please provide a valid email address" in str(exc_info.value)


class TestReplyCreateRequest:
    def test_reply_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            ReplyCreateRequest(name="Ada", text="")
        assert "Please provide a reply!" in str(exc_info.value)

        with pytest.raises(ValidationError) as exc_info:
            ReplyCreateRequest(name="Ada", text="y" * 501)
        assert "Reply cannot exceed 500 characters!" in str(exc_info.value)


class TestCommentResponse:
    def test_wire_format_uses_aliases(self):
        comment = create_item_comment("project-1", "Ada", "Hello")
        comment.replies.append(create_reply("Grace", "Hi Ada"))

        data = CommentResponse.from_comment(comment).model_dump(
            by_alias=True, mode="json"
        )

        assert data["_id"] == str(comment.comment_id)
        assert data["itemId"] == "project-1"
        assert data["likes"] == 0
        assert data["liked"] is False
        assert "createdAt" in data
        assert data["replies"][0]["name"] == "Grace"
        assert "_id" in data["replies"][0]

    def test_liked_reflects_viewer(self):
        comment = create_item_comment("project-1", "Ada", "Hello")
        comment.toggle_like("10.0.0.1")

        assert CommentResponse.from_comment(comment, "10.0.0.1").liked is True
        assert CommentResponse.from_comment(comment, "10.0.0.2").liked is False
        assert CommentResponse.from_comment(comment).liked is False

    def test_parses_wire_payload(self):
        payload = {
            "_id": str(uuid4()),
            "itemId": "project-1",
            "name": "Ada",
            "text": "Hello",
            "likes": 4,
            "replies": [],
            "createdAt": "2025-03-01T12:00:00Z",
        }

        comment = CommentResponse.model_validate(payload)

        assert comment.likes == 4
        assert comment.created_at == datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


class TestPaginationResponse:
    def test_build(self):
        pagination = PaginationResponse.build(page=2, limit=5, total=12)
        assert pagination.total_pages == 3
        assert pagination.has_next is True
        assert pagination.has_prev is True

    def test_empty(self):
        pagination = PaginationResponse.build(page=1, limit=5, total=0)
        assert pagination.total_pages == 0
        assert pagination.has_next is False
        assert pagination.has_prev is False


def test_like_envelope_serialization():
    envelope = Envelope[LikeData](
        message="Comment liked!", data=LikeData(liked=True, likes_count=3)
    )
    assert envelope.model_dump(by_alias=True) == {
        "success": True,
        "message": "Comment liked!",
        "data": {"liked": True, "likesCount": 3},
    }
