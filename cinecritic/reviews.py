import logging
from typing import Dict, Iterable, List, Optional, Tuple

from beanie import PydanticObjectId
from beanie.exceptions import RevisionIdWasChanged
from beanie.operators import AddToSet, In, Inc, Pull, Set

from .exceptions import Conflict, Forbidden, InvalidInput, NotFound
from .models import Review, User, utc_now
from .permissions import can_modify_review
from .schemas import ReviewCreateModel, ReviewEditModel
from .utils import parse_object_id

logger = logging.getLogger(__name__)


async def _bump_reviews_count(user_id: PydanticObjectId, delta: int) -> None:
    await User.find_one(User.id == user_id).update(
        Inc({"stats.reviews_count": delta}),
        Set({User.updated_at: utc_now()}),
    )


async def get_review(review_id) -> Review:
    review = await Review.get(parse_object_id(review_id, "review id"))
    if not review:
        raise NotFound("Review not found")
    return review


async def create_review(author: User, payload: ReviewCreateModel) -> Review:
    """Store a new review and bump the author's review counter.

    The movie's local rating is not touched here; callers schedule
    ``ratings.recompute_movie_rating`` once the review is stored.
    """
    if not payload.content.strip():
        raise InvalidInput("Review content is required")

    existing = await Review.find_one(Review.movie == payload.movie, Review.user == author.id)
    if existing:
        raise InvalidInput("You have already submitted a review for this movie.")

    review = Review(
        user=author.id,
        movie=payload.movie,
        movie_title=payload.movie_title,
        movie_poster=payload.movie_poster,
        rating=payload.rating,
        content=payload.content.strip(),
    )
    await review.insert()
    await _bump_reviews_count(author.id, 1)

    logger.info("User %s reviewed movie %s (%s/5)", author.id, review.movie, review.rating)
    return review


async def update_review(review_id, caller_id: PydanticObjectId, payload: ReviewEditModel) -> Review:
    updates = payload.model_dump(exclude_none=True)
    if not updates:
        raise InvalidInput("No valid fields to update")
    if "content" in updates and not updates["content"].strip():
        raise InvalidInput("Review content cannot be empty")

    review = await get_review(review_id)
    if not can_modify_review(review, caller_id):
        raise Forbidden("Not authorized to update this review")

    if "rating" in updates:
        review.rating = updates["rating"]
    if "content" in updates:
        review.content = updates["content"].strip()
    review.updated_at = utc_now()

    try:
        await review.save()
    except RevisionIdWasChanged:
        raise Conflict()
    return review


async def delete_review(review_id, caller_id: PydanticObjectId) -> Review:
    review = await get_review(review_id)
    if not can_modify_review(review, caller_id):
        raise Forbidden("Not authorized to delete this review")

    await review.delete()
    await _bump_reviews_count(review.user, -1)

    logger.info("User %s deleted review %s", caller_id, review.id)
    return review


async def toggle_like(review_id, user_id: PydanticObjectId, action: Optional[str]) -> List[PydanticObjectId]:
    """Add or remove ``user_id`` from the review's likes. Returns the resulting likes."""
    if not action:
        raise InvalidInput("Missing required fields")
    if action not in ("like", "unlike"):
        raise InvalidInput("Invalid action")

    review = await get_review(review_id)
    operator = AddToSet({Review.likes: user_id}) if action == "like" else Pull({Review.likes: user_id})
    # Document.update writes a new revision_id together with the operator.
    await review.update(operator, ignore_revision=True)
    return review.likes


async def list_reviews(
    movie: Optional[str] = None,
    user=None,
    min_rating: Optional[int] = None,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[List[Review], int]:
    """Reviews newest first, optionally filtered by movie, author and minimum rating."""
    query = Review.find()
    if movie:
        query = query.find(Review.movie == movie)
    if user:
        query = query.find(Review.user == parse_object_id(user, "user id"))
    if min_rating is not None:
        query = query.find(Review.rating >= min_rating)

    total = await query.count()
    reviews = await query.sort(-Review.created_at).skip(skip).limit(limit).to_list()
    return reviews, total


async def load_authors(reviews: Iterable[Review]) -> Dict[PydanticObjectId, User]:
    ids = list({review.user for review in reviews})
    if not ids:
        return {}
    users = await User.find(In(User.id, ids)).to_list()
    return {user.id: user for user in users}
