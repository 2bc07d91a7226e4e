"""In-process fake of the comments API for client tests."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import httpx
import orjson


ITEM_ID = "project-1"
BASE_URL = "http://testserver"
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def make_comment(
    name: str = "Ada",
    text: str = "Hello",
    minutes_ago: int = 0,
    **extra: Any,
) -> dict[str, Any]:
    """A comment as the API sends it."""
    created_at = (NOW - timedelta(minutes=minutes_ago)).isoformat()
    comment = {
        "_id": str(uuid4()),
        "itemId": ITEM_ID,
        "name": name,
        "text": text,
        "likes": 0,
        "liked": False,
        "replies": [],
        "createdAt": created_at,
        "updatedAt": created_at,
    }
    comment.update(extra)
    return comment


def _json(status_code: int, body: Any) -> httpx.Response:
    return httpx.Response(status_code, content=orjson.dumps(body))


class FakeCommentsApi:
    """Minimal stand-in for the comments API served through MockTransport."""

    def __init__(self) -> None:
        self.comments: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failure: httpx.Response | Exception | None = None
        self._hold: tuple[asyncio.Event, asyncio.Event] | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def count(self, method: str, suffix: str = "/comments") -> int:
        return sum(
            1
            for request in self.requests
            if request.method == method and request.url.path.endswith(suffix)
        )

    def hold_next_get(self) -> tuple[asyncio.Event, asyncio.Event]:
        """Delay the next GET; returns (arrived, release) events."""
        self._hold = (asyncio.Event(), asyncio.Event())
        return self._hold

    def find(self, comment_id: str) -> dict[str, Any] | None:
        for comment in self.comments:
            if comment["_id"] == comment_id:
                return comment
        return None

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if isinstance(self.failure, Exception):
            raise self.failure
        if self.failure is not None:
            return self.failure

        parts = request.url.path.strip("/").split("/")
        # api / portfolio / {item} / comments [/ {comment_id} / action]
        if request.method == "GET" and len(parts) == 4:
            response = self._list(request)
            if self._hold is not None:
                arrived, release = self._hold
                self._hold = None
                arrived.set()
                await release.wait()
            return response

        if request.method == "POST" and len(parts) == 4:
            return self._create(orjson.loads(request.content))

        if request.method == "POST" and len(parts) == 6:
            comment = self.find(parts[4])
            if comment is None:
                return _json(
                    404, {"success": False, "message": "This comment doesn't exist!"}
                )
            if parts[5] == "reply":
                return self._reply(comment, orjson.loads(request.content))
            if parts[5] == "like":
                return self._like(comment)

        return _json(404, {"success": False, "message": "Not found"})

    def _list(self, request: httpx.Request) -> httpx.Response:
        newest = request.url.params.get("sort", "-createdAt") == "-createdAt"
        ordered = sorted(self.comments, key=lambda c: c["createdAt"], reverse=newest)
        limit = int(request.url.params.get("limit", 50))
        return _json(
            200,
            {
                "success": True,
                "message": "Comments retrieved successfully!",
                "data": {"comments": [dict(c) for c in ordered[:limit]]},
            },
        )

    def _create(self, payload: dict[str, Any]) -> httpx.Response:
        comment = make_comment(name=payload["name"], text=payload["text"])
        if payload.get("email"):
            comment["email"] = payload["email"]
        self.comments.append(comment)
        return _json(
            201,
            {
                "success": True,
                "message": "Your comment has been posted!",
                "data": {"comment": comment},
            },
        )

    def _reply(
        self, comment: dict[str, Any], payload: dict[str, Any]
    ) -> httpx.Response:
        reply = {
            "_id": str(uuid4()),
            "name": payload["name"],
            "text": payload["text"],
            "createdAt": NOW.isoformat(),
        }
        comment["replies"] = [*comment["replies"], reply]
        return _json(
            201,
            {
                "success": True,
                "message": "Your reply has been posted!",
                "data": {"reply": reply},
            },
        )

    def _like(self, comment: dict[str, Any]) -> httpx.Response:
        comment["liked"] = not comment["liked"]
        comment["likes"] += 1 if comment["liked"] else -1
        return _json(
            200,
            {
                "success": True,
                "message": "Comment liked!" if comment["liked"] else "Like removed!",
                "data": {"liked": comment["liked"], "likesCount": comment["likes"]},
            },
        )


