"""Portfolio comment API endpoints.

All routes are public: visitors comment, reply and like without an account.
Likes are keyed by the caller's address.
"""

from fastapi import APIRouter, Query, Request, status

from devspace.config import get_settings

from .dependencies import ClientIdentifier, CommentServiceDep, handle_comment_error
from .schemas import (
    DEFAULT_LIMIT,
    CommentCreateRequest,
    CommentData,
    CommentListData,
    CommentResponse,
    CommentSort,
    Envelope,
    LikeData,
    PaginationResponse,
    ReplyCreateRequest,
    ReplyData,
    ReplyResponse,
)
from .service import CommentError, parse_comment_id


router = APIRouter(prefix="/api/portfolio", tags=["comments"])


@router.get(
    "/{item_id}/comments",
    response_model=Envelope[CommentListData],
    summary="List item comments",
)
async def list_comments(
    item_id: str,
    comment_service: CommentServiceDep,
    viewer: ClientIdentifier,
    sort: CommentSort = CommentSort.NEWEST,
    limit: int = Query(default=DEFAULT_LIMIT, ge=1),
    page: int = Query(default=1, ge=1),
) -> Envelope[CommentListData]:
    """Get approved comments for a portfolio item, replies included."""
    limit = min(limit, get_settings().comments_max_limit)
    comments, total = await comment_service.list_comments(
        item_id=item_id, sort=sort, limit=limit, page=page
    )

    return Envelope[CommentListData](
        message="Comments retrieved successfully!",
        data=CommentListData(
            comments=[CommentResponse.from_comment(c, viewer) for c in comments],
            pagination=PaginationResponse.build(page=page, limit=limit, total=total),
        ),
    )


@router.post(
    "/{item_id}/comments",
    response_model=Envelope[CommentData],
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    item_id: str,
    data: CommentCreateRequest,
    request: Request,
    comment_service: CommentServiceDep,
    client_ip: ClientIdentifier,
) -> Envelope[CommentData]:
    """Post a comment on a portfolio item. No account required."""
    try:
        comment = await comment_service.create_comment(
            item_id=item_id,
            name=data.name,
            text=data.text,
            email=data.email,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
        )
    except CommentError as e:
        raise handle_comment_error(e) from e

    return Envelope[CommentData](
        message="Your comment has been posted!",
        data=CommentData(comment=CommentResponse.from_comment(comment, client_ip)),
    )


@router.post(
    "/{item_id}/comments/{comment_id}/reply",
    response_model=Envelope[ReplyData],
    status_code=status.HTTP_201_CREATED,
    summary="Reply to comment",
)
async def reply_to_comment(
    item_id: str,
    comment_id: str,
    data: ReplyCreateRequest,
    comment_service: CommentServiceDep,
    client_ip: ClientIdentifier,
) -> Envelope[ReplyData]:
    """Add a reply to a comment. Replies cannot be replied to."""
    try:
        reply = await comment_service.add_reply(
            item_id=item_id,
            comment_id=parse_comment_id(comment_id),
            name=data.name,
            text=data.text,
            email=data.email,
            ip_address=client_ip,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e

    return Envelope[ReplyData](
        message="Your reply has been posted!",
        data=ReplyData(reply=ReplyResponse.from_reply(reply)),
    )


@router.post(
    "/{item_id}/comments/{comment_id}/like",
    response_model=Envelope[LikeData],
    summary="Toggle comment like",
)
async def toggle_like(
    item_id: str,
    comment_id: str,
    comment_service: CommentServiceDep,
    client_ip: ClientIdentifier,
) -> Envelope[LikeData]:
    """Like a comment, or remove the like if this client already liked it."""
    try:
        liked, likes = await comment_service.toggle_like(
            item_id=item_id,
            comment_id=parse_comment_id(comment_id),
            identifier=client_ip,
        )
    except CommentError as e:
        raise handle_comment_error(e) from e

    return Envelope[LikeData](
        message="Comment liked!" if liked else "Like removed!",
        data=LikeData(liked=liked, likes_count=likes),
    )
