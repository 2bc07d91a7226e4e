"""Comment store client.

Owns all network interaction for the comments of one item and the
authoritative in-memory list in ``CommentPageState``. Every public method is
a terminal handler: transport, server and validation failures are logged,
surfaced through the ``Notifier`` where visitors need to know, and returned
as a failed ``StoreResult``. Nothing is raised to the caller.

Mutations reload the full list from the server afterwards, except the like
toggle which patches the single comment in place.
"""

from collections.abc import Callable
from typing import Any, NamedTuple

import httpx
import orjson
from pydantic import ValidationError

from devspace.comments.models import NAME_MAX_LENGTH, TEXT_MAX_LENGTH
from devspace.comments.schemas import CommentResponse
from devspace.config import Settings, get_settings
from devspace.core.logging import get_logger

from .notifications import Notifier
from .state import CommentDraft, CommentPageState


logger = get_logger(__name__)

COMMENTS_PATH = "/api/portfolio/{item_id}/comments"

MISSING_FIELDS_MESSAGE = "Please fill in all required fields"
LOAD_FAILED_MESSAGE = "Failed to load comments"
STALE_MESSAGE = "Superseded by a newer load"
NO_ITEM_MESSAGE = "No portfolio item selected"


class StoreResult(NamedTuple):
    """Outcome of a store operation."""

    ok: bool
    message: str | None = None
    data: Any = None


class CommentRequestError(Exception):
    """A request failed in transport or was rejected by the server.

    ``message`` holds the server-provided message when there was one.
    """

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message or "comment request failed")


def _noop(state: CommentPageState) -> None:
    return None


def _clean(draft: CommentDraft) -> tuple[str, str | None, str]:
    email = draft.email.strip()
    return draft.name.strip(), email or None, draft.text.strip()


def _payload(name: str, email: str | None, text: str) -> dict[str, Any]:
    payload: dict[str, Any] = {"name": name, "text": text}
    if email:
        payload["email"] = email
    return payload


def _draft_error(name: str, text: str, label: str) -> str | None:
    if not name or not text:
        return MISSING_FIELDS_MESSAGE
    if len(name) > NAME_MAX_LENGTH:
        return f"Name cannot exceed {NAME_MAX_LENGTH} characters!"
    if len(text) > TEXT_MAX_LENGTH:
        return f"{label} cannot exceed {TEXT_MAX_LENGTH} characters!"
    return None


class CommentStoreClient:
    """Network client for one comment section."""

    def __init__(
        self,
        state: CommentPageState,
        notifier: Notifier,
        on_change: Callable[[CommentPageState], None] | None = None,
        base_url: str = "http://localhost:5000",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.state = state
        self.notifier = notifier
        self.on_change = on_change or _noop
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        state: CommentPageState,
        notifier: Notifier,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CommentStoreClient":
        settings = settings or get_settings()
        return cls(
            state,
            notifier,
            base_url=settings.comments_api_base_url,
            timeout=settings.comments_client_timeout,
            transport=transport,
        )

    def _comments_path(self, item_id: str) -> str:
        return COMMENTS_PATH.format(item_id=item_id)

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded success envelope.

        Raises:
            CommentRequestError: transport failure, non-2xx status, a body
                that is not a JSON object, or ``success: false``
        """
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method, path, params=params, json=payload
                )
        except httpx.TimeoutException as e:
            logger.warning("comment_request_timeout", path=path, error=str(e))
            raise CommentRequestError() from e
        except httpx.RequestError as e:
            logger.warning("comment_request_error", path=path, error=str(e))
            raise CommentRequestError() from e

        try:
            body = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            logger.warning(
                "comment_response_not_json",
                path=path,
                status_code=response.status_code,
            )
            raise CommentRequestError(status_code=response.status_code) from e

        if not isinstance(body, dict):
            raise CommentRequestError(status_code=response.status_code)

        message = body.get("message")
        if not response.is_success or not body.get("success"):
            logger.warning(
                "comment_request_rejected",
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise CommentRequestError(message, response.status_code)

        return body

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_comments(self, item_id: str | None = None) -> StoreResult:
        """Fetch the item's comments and replace the in-memory list.

        The view is re-rendered whether or not the load succeeds. A response
        that arrives after a newer load was issued is dropped.
        """
        state = self.state
        if item_id is not None:
            state.item_id = item_id
        if state.item_id is None:
            return StoreResult(False, NO_ITEM_MESSAGE)

        generation = state.next_generation()
        target = state.item_id
        params = {"sort": state.sort.query_value, "limit": state.fetch_limit}

        try:
            path = self._comments_path(target)
            body = await self._request("GET", path, params=params)
            comments = [
                CommentResponse.model_validate(raw)
                for raw in (body.get("data") or {}).get("comments") or []
            ]
        except (CommentRequestError, ValidationError, AttributeError, TypeError) as e:
            if generation != state.generation:
                return self._discard_stale(target, generation)
            logger.error("comments_load_failed", item_id=target, error=str(e))
            self.notifier.error(LOAD_FAILED_MESSAGE)
            self.on_change(state)
            return StoreResult(False, LOAD_FAILED_MESSAGE)

        if generation != state.generation:
            return self._discard_stale(target, generation)

        state.comments = comments
        state.page = min(state.page, max(state.total_pages, 1))
        logger.debug("comments_loaded", item_id=target, count=len(comments))
        self.on_change(state)
        return StoreResult(True, body.get("message"), comments)

    def _discard_stale(self, item_id: str, generation: int) -> StoreResult:
        logger.info(
            "stale_comments_response_discarded",
            item_id=item_id,
            generation=generation,
            latest=self.state.generation,
        )
        return StoreResult(False, STALE_MESSAGE)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def submit_comment(self, draft: CommentDraft | None = None) -> StoreResult:
        """Post a top-level comment from ``draft`` (the main form by default)."""
        draft = draft if draft is not None else self.state.comment_draft
        name, email, text = _clean(draft)

        error = _draft_error(name, text, "Comment")
        if error is None and self.state.item_id is None:
            error = NO_ITEM_MESSAGE
        if error:
            self.notifier.error(error)
            return StoreResult(False, error)

        try:
            body = await self._request(
                "POST",
                self._comments_path(self.state.item_id),
                payload=_payload(name, email, text),
            )
        except CommentRequestError as e:
            message = f"Error: {e.message or 'Failed to post comment'}"
            self.notifier.error(message)
            return StoreResult(False, message)

        draft.reset()
        self.notifier.success("Comment posted successfully!")
        await self.load_comments()
        return StoreResult(True, body.get("message"), body.get("data"))

    async def submit_reply(
        self, comment_id: str, draft: CommentDraft | None = None
    ) -> StoreResult:
        """Post a reply to ``comment_id`` and collapse its reply form."""
        state = self.state
        draft = draft if draft is not None else state.reply_draft(comment_id)
        name, email, text = _clean(draft)

        error = _draft_error(name, text, "Reply")
        if error is None and state.item_id is None:
            error = NO_ITEM_MESSAGE
        if error:
            self.notifier.error(error)
            return StoreResult(False, error)

        path = f"{self._comments_path(state.item_id)}/{comment_id}/reply"
        try:
            payload = _payload(name, email, text)
            body = await self._request("POST", path, payload=payload)
        except CommentRequestError as e:
            message = f"Error: {e.message or 'Failed to post reply'}"
            self.notifier.error(message)
            return StoreResult(False, message)

        self.notifier.success("Reply posted!")
        draft.reset()
        state.open_reply_forms.discard(comment_id)
        await self.load_comments()
        return StoreResult(True, body.get("message"), body.get("data"))

    async def toggle_like(self, comment_id: str) -> StoreResult:
        """Toggle this client's like and patch the comment in place.

        Failures are logged only; likes are best effort.
        """
        state = self.state
        if state.item_id is None:
            return StoreResult(False, NO_ITEM_MESSAGE)

        path = f"{self._comments_path(state.item_id)}/{comment_id}/like"
        try:
            body = await self._request("POST", path)
            data = body["data"]
            liked = bool(data["liked"])
            likes = int(data["likesCount"])
        except (CommentRequestError, KeyError, TypeError, ValueError) as e:
            logger.warning(
                "comment_like_failed",
                item_id=state.item_id,
                comment_id=comment_id,
                error=str(e),
            )
            return StoreResult(False, getattr(e, "message", None))

        comment = state.find_comment(comment_id)
        if comment is not None:
            comment.liked = liked
            comment.likes = likes
            self.on_change(state)
        return StoreResult(True, body.get("message"), data)
