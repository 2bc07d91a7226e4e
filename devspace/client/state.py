"""View state for one open comment section.

A ``CommentPageState`` belongs to a single ``CommentSection``. It is created
when a detail view opens, replaced wholesale on every reload, and discarded
when the view closes. Only the store client writes ``comments``; the
renderer only reads it.
"""

from dataclasses import dataclass, field
from enum import Enum

from devspace.comments.schemas import CommentResponse, CommentSort


COMMENTS_PER_PAGE = 5
FETCH_LIMIT = 50


class SortOrder(str, Enum):
    """Sort choices offered by the section's dropdown."""

    NEWEST = "newest"
    OLDEST = "oldest"

    @property
    def query_value(self) -> str:
        """Sort parameter sent to the list endpoint."""
        if self is SortOrder.NEWEST:
            return CommentSort.NEWEST.value
        return CommentSort.OLDEST.value


@dataclass
class CommentDraft:
    """Contents of a comment or reply form."""

    name: str = ""
    email: str = ""
    text: str = ""
    cursor: int | None = None

    def reset(self) -> None:
        self.text = ""
        self.email = ""
        self.name = ""
        self.cursor = None


@dataclass
class CommentPageState:
    """Client-side state of the comment list for one item."""

    item_id: str | None = None
    per_page: int = COMMENTS_PER_PAGE
    fetch_limit: int = FETCH_LIMIT
    page: int = 1
    sort: SortOrder = SortOrder.NEWEST
    comments: list[CommentResponse] = field(default_factory=list)
    comment_draft: CommentDraft = field(default_factory=CommentDraft)
    reply_drafts: dict[str, CommentDraft] = field(default_factory=dict)
    open_reply_forms: set[str] = field(default_factory=set)
    # Bumped per issued load; responses from older loads are dropped
    generation: int = 0

    def reset(self, item_id: str | None) -> None:
        """Start a fresh view for ``item_id``."""
        self.item_id = item_id
        self.page = 1
        self.comments = []
        self.comment_draft = CommentDraft()
        self.reply_drafts = {}
        self.open_reply_forms = set()

    def next_generation(self) -> int:
        self.generation += 1
        return self.generation

    @property
    def total_pages(self) -> int:
        return -(-len(self.comments) // self.per_page)

    def reply_draft(self, comment_id: str) -> CommentDraft:
        """Get (or create) the reply form contents for a comment."""
        return self.reply_drafts.setdefault(comment_id, CommentDraft())

    def find_comment(self, comment_id: str) -> CommentResponse | None:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None
