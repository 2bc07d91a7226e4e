"""Comment renderer.

Projects a ``CommentPageState`` into HTML fragments and a list of
``Binding`` entries describing every interactive element. Rendering never
touches the network or mutates state; ``CommentSection`` attaches handlers
to the bindings in a single pass.

All visitor-supplied text (names, bodies, draft values) goes through
``escape_html`` before it is placed in markup.
"""

import html
import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from urllib.parse import quote

from devspace.comments.models import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    TEXT_MAX_LENGTH,
    as_utc,
)
from devspace.comments.schemas import CommentResponse, ReplyResponse

from .state import CommentDraft, CommentPageState, SortOrder


AVATAR_COLORS = ("#965aff", "#2bc4fa", "#fde68a", "#ff568f", "#00d4aa")

EMOJI_PICKER = (
    "😊", "👍", "🎉", "🔥", "💯", "⭐", "🚀", "💎",
    "🎯", "✨", "💫", "🌟", "👏", "❤️", "💪", "🔥",
)  # fmt: skip

EMPTY_MESSAGE = "No comments yet. Be the first to comment!"


# ==============================================================================
# Templates
# ==============================================================================

EMPTY_TEMPLATE = """
<div class="comments-empty">
  <div class="empty-icon">💬</div>
  <p>{message}</p>
</div>
"""

AVATAR_TEMPLATE = (
    '<div class="comment-avatar" '
    'style="background: linear-gradient(135deg, {color}, {color}dd);">'
    "{initials}</div>"
)

COMMENT_TEMPLATE = """
<div class="comment-item" data-comment-id="{comment_id}">
  <div class="comment-header">
    {avatar}
    <div class="comment-author-info">
      <div class="comment-author-name">{name}</div>
      <div class="comment-date">{date}</div>
    </div>
  </div>
  <div class="comment-text">{text}</div>
  <div class="comment-actions">
    <button class="{like_class}"
            data-action="like" data-target="{comment_id}" data-liked="{liked}">
      <span class="like-icon">❤️</span>
      <span class="like-count">{likes}</span>
    </button>
    <button class="comment-reply-btn" data-action="reply" data-target="{comment_id}">
      💬 Reply
    </button>
  </div>
  {replies}
  <div class="reply-form-container"
       id="replyForm_{comment_id}" style="display: {display};">
    {reply_form}
  </div>
</div>
"""

REPLIES_TEMPLATE = """<div class="comment-replies">{replies}</div>"""

REPLY_TEMPLATE = """
<div class="comment-reply">
  <div class="reply-indicator">↳</div>
  <div class="reply-content">
    <div class="reply-header">
      {avatar}
      <div class="reply-author-info">
        <div class="comment-author-name">{name}</div>
        <div class="comment-date">{date}</div>
      </div>
    </div>
    <div class="comment-text">{text}</div>
  </div>
</div>
"""

REPLY_FORM_TEMPLATE = """
<form class="reply-form" data-action="submit-reply" data-target="{comment_id}">
  <div class="form-row">
    <input type="text" name="replyName" placeholder="Your name" required
           maxlength="{name_max}" value="{name}">
    <input type="email" name="replyEmail" placeholder="Email (optional)"
           maxlength="{email_max}" value="{email}">
  </div>
  <textarea name="replyText" placeholder="Write a reply..." required
            maxlength="{text_max}">{text}</textarea>
  <div class="form-actions-inline">
    <span class="char-counter" id="replyCounter_{comment_id}">{counter}</span>
    <div>
      <button type="button" class="btn-cancel-reply"
              data-action="cancel-reply" data-target="{comment_id}">Cancel</button>
      <button type="submit" class="btn-submit-reply">Post Reply</button>
    </div>
  </div>
</form>
"""

PAGINATION_TEMPLATE = """
<div class="pagination-controls">
  <button class="page-btn"
          data-action="page" data-target="{previous}"{previous_disabled}>
    ← Previous
  </button>
  <span class="page-info">Page {current} of {total}</span>
  <button class="page-btn"
          data-action="page" data-target="{next}"{next_disabled}>
    Next →
  </button>
</div>
"""

COMMENT_FORM_TEMPLATE = """
<div class="comment-form-section">
  <div class="section-header">💬 Leave a Comment</div>
  <form id="newCommentForm" class="comment-form" data-action="submit-comment">
    <div class="form-row">
      <input type="text" name="commentName" id="commentName"
             placeholder="Your name *" required maxlength="{name_max}" value="{name}">
      <input type="email" name="commentEmail" id="commentEmail"
             placeholder="Email (optional)" maxlength="{email_max}" value="{email}">
    </div>
    <div class="emoji-picker-container">
      <div class="emoji-picker-label">Add emoji:</div>
      <div class="emoji-picker" id="emojiPicker">{emojis}</div>
    </div>
    <textarea name="commentText" id="commentText"
              placeholder="Write your comment here... (max {text_max} characters)"
              required maxlength="{text_max}">{text}</textarea>
    <div class="form-actions-inline">
      <span class="char-counter" id="commentCounter">{counter}</span>
      <button type="submit" class="btn-submit-comment">💬 Post Comment</button>
    </div>
  </form>
</div>
"""

EMOJI_BUTTON_TEMPLATE = (
    '<button type="button" class="emoji-btn" data-action="emoji" '
    'data-target="{emoji}">{emoji}</button>'
)

SECTION_TEMPLATE = """
<div class="comments-header">
  <h3>💬 Comments</h3>
  <div class="comment-sort">
    <select id="commentSort" data-action="sort">
      <option value="newest"{newest_selected}>Newest First</option>
      <option value="oldest"{oldest_selected}>Oldest First</option>
    </select>
  </div>
</div>
{form}
<div id="commentsContainer" class="comments-list">{comments}</div>
<div id="commentsPagination" class="comments-pagination">{pagination}</div>
"""


# ==============================================================================
# Pure helpers
# ==============================================================================


@dataclass(frozen=True)
class Avatar:
    initials: str
    color: str
    url: str


def generate_avatar(name: str) -> Avatar:
    """Derive initials and a palette color from a display name."""
    initials = "".join(word[0] for word in name.split(" ") if word)[:2].upper()
    color = AVATAR_COLORS[len(name) % len(AVATAR_COLORS)]
    url = (
        f"https://ui-avatars.com/api/?name={quote(name, safe='')}"
        f"&background={color[1:]}&color=fff&size=40&bold=true"
    )
    return Avatar(initials=initials, color=color, url=url)


def _parse_timestamp(value: datetime | str) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return as_utc(value)


def format_relative_time(
    timestamp: datetime | str, now: datetime | str | None = None
) -> str:
    """Describe ``timestamp`` relative to ``now``.

    Returns "Just now", "{n}m ago", "{n}h ago" or "{n}d ago" within a week,
    and a short date ("Mar 4", or "Mar 4, 2023" in another year) after that.
    Naive datetimes are taken as UTC.
    """
    moment = _parse_timestamp(timestamp)
    reference = _parse_timestamp(now) if now is not None else datetime.now(UTC)

    seconds = (reference - moment).total_seconds()
    minutes = math.floor(seconds / 60)
    hours = math.floor(seconds / 3600)
    days = math.floor(seconds / 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"

    label = f"{moment.strftime('%b')} {moment.day}"
    if moment.year != reference.year:
        label = f"{label}, {moment.year}"
    return label


@dataclass(frozen=True)
class Pagination:
    """Client-side page window over the fetched comment list."""

    total_pages: int
    current_page: int
    start: int
    end: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def show_controls(self) -> bool:
        return self.total_pages > 1


def paginate(total_count: int, page_size: int, current_page: int) -> Pagination:
    """Compute the ``[start, end)`` window for ``current_page``."""
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    start = min(max(current_page - 1, 0) * page_size, total_count)
    end = min(start + page_size, total_count)
    return Pagination(
        total_pages=total_pages, current_page=current_page, start=start, end=end
    )


def escape_html(text: str | None) -> str:
    """Entity-escape ``& < > " '`` so text is inert inside markup."""
    if text is None:
        return ""
    return html.escape(str(text), quote=True)


def char_count(text: str) -> str:
    return f"{len(text)}/{TEXT_MAX_LENGTH}"


# ==============================================================================
# View rendering
# ==============================================================================


@dataclass(frozen=True)
class Binding:
    """An interactive element in rendered markup.

    ``key`` is unique per handler: ``"like:<comment id>"``, ``"page:2"``,
    ``"submit-comment"`` and so on.
    """

    action: str
    target: str | None = None

    @property
    def key(self) -> str:
        return self.action if self.target is None else f"{self.action}:{self.target}"


@dataclass
class RenderedView:
    comments_html: str
    pagination_html: str
    pagination: Pagination
    bindings: list[Binding] = field(default_factory=list)


def _render_avatar(name: str) -> str:
    avatar = generate_avatar(name)
    return AVATAR_TEMPLATE.format(
        color=avatar.color, initials=escape_html(avatar.initials)
    )


def render_reply(reply: ReplyResponse, now: datetime) -> str:
    return REPLY_TEMPLATE.format(
        avatar=_render_avatar(reply.name),
        name=escape_html(reply.name),
        date=format_relative_time(reply.created_at, now),
        text=escape_html(reply.text),
    )


def render_reply_form(comment_id: str, draft: CommentDraft | None = None) -> str:
    draft = draft or CommentDraft()
    return REPLY_FORM_TEMPLATE.format(
        comment_id=escape_html(comment_id),
        name=escape_html(draft.name),
        email=escape_html(draft.email),
        text=escape_html(draft.text),
        counter=char_count(draft.text),
        name_max=NAME_MAX_LENGTH,
        email_max=EMAIL_MAX_LENGTH,
        text_max=TEXT_MAX_LENGTH,
    )


def render_comment(
    comment: CommentResponse, state: CommentPageState, now: datetime
) -> str:
    """Render one comment with all of its replies and its reply form."""
    replies = ""
    if comment.replies:
        replies = REPLIES_TEMPLATE.format(
            replies="".join(render_reply(reply, now) for reply in comment.replies)
        )

    like_class = "comment-like-btn liked" if comment.liked else "comment-like-btn"
    return COMMENT_TEMPLATE.format(
        comment_id=escape_html(comment.id),
        avatar=_render_avatar(comment.name),
        name=escape_html(comment.name),
        date=format_relative_time(comment.created_at, now),
        text=escape_html(comment.text),
        like_class=like_class,
        liked="true" if comment.liked else "false",
        likes=comment.likes,
        replies=replies,
        display="block" if comment.id in state.open_reply_forms else "none",
        reply_form=render_reply_form(comment.id, state.reply_drafts.get(comment.id)),
    )


def render_pagination(pagination: Pagination) -> str:
    """Previous/Next controls; empty when everything fits on one page."""
    if not pagination.show_controls:
        return ""
    return PAGINATION_TEMPLATE.format(
        previous=pagination.current_page - 1,
        next=pagination.current_page + 1,
        previous_disabled="" if pagination.has_previous else " disabled",
        next_disabled="" if pagination.has_next else " disabled",
        current=pagination.current_page,
        total=pagination.total_pages,
    )


def render(state: CommentPageState, now: datetime | None = None) -> RenderedView:
    """Render the current page of comments and collect its bindings."""
    now = now or datetime.now(UTC)
    pagination = paginate(len(state.comments), state.per_page, state.page)

    if not state.comments:
        return RenderedView(
            comments_html=EMPTY_TEMPLATE.format(message=EMPTY_MESSAGE),
            pagination_html="",
            pagination=pagination,
        )

    window = state.comments[pagination.start : pagination.end]
    bindings: list[Binding] = []
    for comment in window:
        bindings.extend(
            Binding(action, comment.id)
            for action in ("like", "reply", "cancel-reply", "submit-reply")
        )

    if pagination.show_controls:
        if pagination.has_previous:
            bindings.append(Binding("page", str(pagination.current_page - 1)))
        if pagination.has_next:
            bindings.append(Binding("page", str(pagination.current_page + 1)))

    return RenderedView(
        comments_html="".join(render_comment(c, state, now) for c in window),
        pagination_html=render_pagination(pagination),
        pagination=pagination,
        bindings=bindings,
    )


def render_comment_form(draft: CommentDraft | None = None) -> str:
    """Render the top-level comment form with its emoji picker."""
    draft = draft or CommentDraft()
    return COMMENT_FORM_TEMPLATE.format(
        name=escape_html(draft.name),
        email=escape_html(draft.email),
        text=escape_html(draft.text),
        counter=char_count(draft.text),
        emojis="".join(EMOJI_BUTTON_TEMPLATE.format(emoji=e) for e in EMOJI_PICKER),
        name_max=NAME_MAX_LENGTH,
        email_max=EMAIL_MAX_LENGTH,
        text_max=TEXT_MAX_LENGTH,
    )


def form_bindings() -> list[Binding]:
    """Bindings for the section header and comment form, which never change."""
    bindings = [Binding("submit-comment")]
    bindings.extend(Binding("sort", order.value) for order in SortOrder)
    bindings.extend(Binding("emoji", emoji) for emoji in dict.fromkeys(EMOJI_PICKER))
    return bindings


def render_section(
    state: CommentPageState, view: RenderedView | None = None
) -> str:
    """Render the whole section: header, form, list and pagination."""
    view = view or render(state)
    return SECTION_TEMPLATE.format(
        newest_selected=" selected" if state.sort is SortOrder.NEWEST else "",
        oldest_selected=" selected" if state.sort is SortOrder.OLDEST else "",
        form=render_comment_form(state.comment_draft),
        comments=view.comments_html,
        pagination=view.pagination_html,
    )
