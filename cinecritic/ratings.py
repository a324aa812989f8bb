"""Local rating aggregate for movies.

The aggregate is always rebuilt from every review of the movie, never adjusted
incrementally, so running it again repairs any earlier drift.
"""

import logging
from typing import Optional

from beanie.operators import Set, SetOnInsert
from pymongo.errors import DuplicateKeyError

from .models import LocalRating, Movie, Review, utc_now

logger = logging.getLogger(__name__)


async def compute_aggregate(movie_id: str) -> Optional[LocalRating]:
    """Mean rating (one decimal) and review count for a movie, or None without reviews."""
    pipeline = [
        {
            "$group": {
                "_id": None,
                "average": {"$avg": "$rating"},
                "count": {"$sum": 1},
            }
        }
    ]
    result = await Review.find(Review.movie == movie_id).aggregate(pipeline).to_list()
    if not result or not result[0]["count"]:
        return None
    return LocalRating(average=round(result[0]["average"], 1), count=result[0]["count"])


async def upsert_aggregate_rating(
    movie_id: str, rating: LocalRating, title: Optional[str] = None, poster: Optional[str] = None
) -> Movie:
    """Store ``rating`` on the movie with one server-side upsert, creating the record if needed."""
    now = utc_now()
    operators = (
        Set({Movie.local_rating: rating, Movie.updated_at: now}),
        SetOnInsert({Movie.title: title, Movie.poster: poster, Movie.views: 0, Movie.created_at: now}),
    )
    try:
        await Movie.find_one(Movie.movie_id == movie_id).update(*operators, upsert=True)
    except DuplicateKeyError:
        # A parallel upsert inserted the record first; this one now matches it.
        await Movie.find_one(Movie.movie_id == movie_id).update(*operators, upsert=True)
    return await Movie.find_one(Movie.movie_id == movie_id)


async def recompute_movie_rating(
    movie_id: str, title: Optional[str] = None, poster: Optional[str] = None
) -> Optional[LocalRating]:
    """Rebuild and store the movie's local rating.

    Failures are logged and swallowed: the review that triggered the recompute
    has already been stored.
    """
    try:
        rating = await compute_aggregate(movie_id)
        if rating is None:
            rating = LocalRating()
        await upsert_aggregate_rating(movie_id, rating, title=title, poster=poster)
    except Exception:
        logger.exception("Error updating local rating for movie %s", movie_id)
        return None

    logger.info(
        "Updated movie %s with new local rating: %s/5 (%d reviews)",
        movie_id, rating.average, rating.count,
    )
    return rating
