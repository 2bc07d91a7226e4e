"""Comment section for one portfolio item detail view.

``CommentSection`` owns the page state, re-renders whenever the store
reports a change, and binds every rendered interactive element to an async
handler in one pass. UI code only needs to call ``dispatch`` with the
binding key of the element that fired.
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from functools import partial
from typing import Any

import httpx

from devspace.comments.models import TEXT_MAX_LENGTH
from devspace.config import Settings, get_settings
from devspace.core.logging import get_logger

from .notifications import Notifier
from .render import (
    Binding,
    RenderedView,
    char_count,
    form_bindings,
    render,
    render_section,
)
from .state import CommentDraft, CommentPageState, SortOrder
from .store import CommentStoreClient, StoreResult


logger = get_logger(__name__)

Handler = Callable[[], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CommentSection:
    """Comment list, forms and pagination for the open item."""

    def __init__(
        self,
        store: CommentStoreClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.state = store.state
        self.notifier = store.notifier
        self._clock = clock
        self.view: RenderedView | None = None
        self.handlers: dict[str, Handler] = {}
        store.on_change = self.refresh

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> "CommentSection":
        """Build a section, its state and its store from application settings."""
        settings = settings or get_settings()
        state = CommentPageState(
            per_page=settings.comments_per_page,
            fetch_limit=settings.comments_fetch_limit,
        )
        store = CommentStoreClient.from_settings(
            state, Notifier(), settings=settings, transport=transport
        )
        return cls(store, clock=clock)

    @property
    def is_open(self) -> bool:
        return self.state.item_id is not None

    @property
    def html(self) -> str:
        """Full section markup for the current state."""
        return render_section(self.state, self.view or self.refresh())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(
        self,
        item_id: str,
        viewer_name: str | None = None,
        viewer_email: str | None = None,
    ) -> StoreResult:
        """Start a fresh view of ``item_id`` and load its comments.

        A signed-in visitor's name and email pre-fill the comment form.
        """
        logger.debug("comment_section_opened", item_id=item_id)
        self.state.reset(item_id)
        if viewer_name:
            self.state.comment_draft.name = viewer_name
        if viewer_email:
            self.state.comment_draft.email = viewer_email
        self.refresh()
        return await self.store.load_comments(item_id)

    def close(self) -> None:
        """Discard the view. Loads still in flight are dropped on arrival."""
        self.state.next_generation()
        self.state.reset(None)
        self.view = None
        self.handlers = {}

    def refresh(self, state: CommentPageState | None = None) -> RenderedView:
        """Re-render and re-bind. Registered as the store's change callback."""
        self.view = render(self.state, self._clock())
        self.bind(self.view)
        return self.view

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, view: RenderedView) -> dict[str, Handler]:
        """Attach a handler to every binding of ``view`` and the comment form."""
        handlers: dict[str, Handler] = {}
        for binding in [*form_bindings(), *view.bindings]:
            handlers[binding.key] = self._handler_for(binding)
        self.handlers = handlers
        return handlers

    def _handler_for(self, binding: Binding) -> Handler:
        target = binding.target
        store = self.store

        if binding.action == "like":
            return partial(store.toggle_like, target)
        if binding.action == "submit-reply":
            return partial(store.submit_reply, target)
        if binding.action == "submit-comment":
            return partial(store.submit_comment)
        if binding.action == "sort":
            return partial(self.change_sort, target)

        if binding.action == "reply":
            action = partial(self.toggle_reply_form, target)
        elif binding.action == "cancel-reply":
            action = partial(self.cancel_reply, target)
        elif binding.action == "page":
            action = partial(self.change_page, int(target))
        elif binding.action == "emoji":
            action = partial(self.insert_emoji, self.state.comment_draft, target)
        else:
            msg = f"Unknown comment binding: {binding.key}"
            raise ValueError(msg)

        async def run() -> Any:
            return action()

        return run

    async def dispatch(self, key: str) -> Any:
        """Run the handler bound to ``key``; unknown keys are ignored."""
        handler = self.handlers.get(key)
        if handler is None:
            logger.warning("comment_binding_not_found", key=key)
            return None
        return await handler()

    # ------------------------------------------------------------------
    # Client-side interactions
    # ------------------------------------------------------------------

    def change_page(self, page: int) -> bool:
        """Show another page of the fetched list. No request is made."""
        if page < 1 or page > self.state.total_pages:
            return False
        self.state.page = page
        self.refresh()
        return True

    async def change_sort(self, sort: SortOrder | str) -> StoreResult:
        self.state.sort = SortOrder(sort)
        self.state.page = 1
        return await self.store.load_comments()

    def toggle_reply_form(self, comment_id: str) -> bool:
        """Show or hide the reply form of a comment; returns the new visibility."""
        forms = self.state.open_reply_forms
        visible = comment_id not in forms
        if visible:
            forms.add(comment_id)
        else:
            forms.discard(comment_id)
        self.refresh()
        return visible

    def cancel_reply(self, comment_id: str) -> None:
        self.state.open_reply_forms.discard(comment_id)
        self.state.reply_draft(comment_id).reset()
        self.refresh()

    @staticmethod
    def insert_emoji(draft: CommentDraft, emoji: str) -> str:
        """Insert ``emoji`` at the draft's cursor and move the cursor past it.

        A draft the emoji would push past the length limit is left unchanged.
        """
        text = draft.text
        if len(text) + len(emoji) > TEXT_MAX_LENGTH:
            return text
        cursor = len(text) if draft.cursor is None else draft.cursor
        cursor = min(max(cursor, 0), len(text))
        draft.text = text[:cursor] + emoji + text[cursor:]
        draft.cursor = cursor + len(emoji)
        return draft.text

    @staticmethod
    def char_count(draft: CommentDraft) -> str:
        return char_count(draft.text)
