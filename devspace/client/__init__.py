"""Comment section client: store, renderer and view binding.

Talks to the comments API over HTTP and keeps the open item's comment list
in a ``CommentPageState`` owned by one ``CommentSection``.
"""

from .notifications import Notification, NotificationLevel, Notifier
from .render import (
    Binding,
    RenderedView,
    escape_html,
    format_relative_time,
    generate_avatar,
    paginate,
    render,
)
from .section import CommentSection
from .state import CommentDraft, CommentPageState, SortOrder
from .store import CommentStoreClient, StoreResult


__all__ = [
    "Binding",
    "CommentDraft",
    "CommentPageState",
    "CommentSection",
    "CommentStoreClient",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "RenderedView",
    "SortOrder",
    "StoreResult",
    "escape_html",
    "format_relative_time",
    "generate_avatar",
    "paginate",
    "render",
]
