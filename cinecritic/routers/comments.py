from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from ..schemas import (
    CommentCreateModel, CommentEditModel, CommentResponse, CommentListResponse, CommentPagination,
)
from ..OAuth2 import get_current_user
from ..notifications import notify_mentions
from ..utils import parse_object_id
from .. import comments as comment_service

router = APIRouter(prefix="/reviews/{review_id}/comments", tags=['comments'])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=CommentResponse)
async def add_comment(
    review_id: str,
    body: CommentCreateModel,
    background_tasks: BackgroundTasks,
    user=Depends(get_current_user),
):
    comment = await comment_service.add_comment(
        review_id, user, body.content, parent_comment_id=body.parent_comment_id
    )

    if comment.mentions:
        background_tasks.add_task(
            notify_mentions, comment.user, parse_object_id(review_id), comment.id, comment.mentions
        )

    return CommentResponse(message="Comment added successfully", comment=comment)


@router.get("", response_model=CommentListResponse)
async def get_comments(
    review_id: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    comments, total = await comment_service.list_comments(review_id, skip=skip, limit=limit)
    return CommentListResponse(
        comments=comments,
        pagination=CommentPagination(total=total, limit=limit, skip=skip),
    )


@router.put("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    review_id: str,
    comment_id: str,
    body: CommentEditModel,
    user=Depends(get_current_user),
):
    comment = await comment_service.edit_comment(review_id, comment_id, user.id, body.content)
    return CommentResponse(message="Comment updated successfully", comment=comment)


@router.delete("/{comment_id}", status_code=status.HTTP_200_OK)
async def delete_comment(review_id: str, comment_id: str, user=Depends(get_current_user)):
    removed = await comment_service.delete_comment(review_id, comment_id, user.id)
    return {"message": "Comment deleted successfully", "removed": removed}
