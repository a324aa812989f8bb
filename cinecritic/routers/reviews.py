from typing import Optional
from fastapi import APIRouter, BackgroundTasks, status, Depends, Query
from ..schemas import (
    ReviewCreateModel, ReviewEditModel, ReviewResponseModel, ReviewListResponse,
    LikeAction, LikeResponse, Pagination,
)
from ..OAuth2 import get_current_user
from ..ratings import recompute_movie_rating
from .. import reviews as review_service


router = APIRouter(prefix="/reviews", tags=['review'])

@router.post("", status_code=status.HTTP_201_CREATED)
async def add_review(review: ReviewCreateModel, background_tasks: BackgroundTasks, user=Depends(get_current_user)):
    new_review = await review_service.create_review(user, review)

    # The local rating is rebuilt after the response; a failure there is only logged.
    background_tasks.add_task(
        recompute_movie_rating, new_review.movie,
        title=new_review.movie_title, poster=new_review.movie_poster,
    )

    return {
        "message": "Review created successfully",
        "review": ReviewResponseModel.from_review(new_review, author=user),
    }


@router.get("", response_model=ReviewListResponse)
async def get_reviews(
    movie: Optional[str] = None,
    user: Optional[str] = None,
    rating: Optional[int] = Query(None, ge=1, le=5),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
):
    reviews, total = await review_service.list_reviews(
        movie=movie, user=user, min_rating=rating, skip=skip, limit=limit
    )
    authors = await review_service.load_authors(reviews)

    return ReviewListResponse(
        reviews=[ReviewResponseModel.from_review(r, author=authors.get(r.user)) for r in reviews],
        pagination=Pagination.build(total, skip // limit + 1, limit),
    )


@router.get("/{review_id}", response_model=ReviewResponseModel)
async def get_review(review_id: str):
    review = await review_service.get_review(review_id)
    authors = await review_service.load_authors([review])
    return ReviewResponseModel.from_review(review, author=authors.get(review.user))


@router.put("/{review_id}", status_code=status.HTTP_200_OK)
async def edit_review(
    review_id: str,
    review_update: ReviewEditModel,
    background_tasks: BackgroundTasks,
    user=Depends(get_current_user),
):
    """Allow a user to edit their existing review for a movie."""
    review = await review_service.update_review(review_id, user.id, review_update)

    if review_update.rating is not None:
        background_tasks.add_task(recompute_movie_rating, review.movie)

    return {
        "message": "Review updated successfully",
        "review": ReviewResponseModel.from_review(review, author=user),
    }


@router.delete("/{review_id}", status_code=status.HTTP_200_OK)
async def delete_review(review_id: str, background_tasks: BackgroundTasks, user=Depends(get_current_user)):
    review = await review_service.delete_review(review_id, user.id)
    background_tasks.add_task(recompute_movie_rating, review.movie)
    return {"message": "Review deleted successfully"}


@router.post("/{review_id}/like", response_model=LikeResponse)
async def like_review(review_id: str, body: LikeAction, user=Depends(get_current_user)):
    likes = await review_service.toggle_like(review_id, user.id, body.action)
    return LikeResponse(
        message="Review liked" if body.action == "like" else "Review unliked",
        likes=likes,
    )
