from pymongo.errors import DuplicateKeyError

from cinecritic.models import LocalRating, Movie, Review
from cinecritic.ratings import compute_aggregate, recompute_movie_rating, upsert_aggregate_rating

from conftest import make_review, make_user


async def test_aggregate_is_rounded_mean_and_count():
    ratings = [5, 4, 4]
    for i, rating in enumerate(ratings):
        author = await make_user(f"user{i}")
        await make_review(author, movie="tt42", rating=rating)
    other = await make_user("other")
    await make_review(other, movie="tt99", rating=1)

    aggregate = await compute_aggregate("tt42")

    assert aggregate.count == 3
    assert aggregate.average == round(sum(ratings) / len(ratings), 1) == 4.3


async def test_aggregate_without_reviews_is_none():
    assert await compute_aggregate("tt0000000") is None


async def test_recompute_creates_movie_record():
    author = await make_user("critic")
    await make_review(author, movie="tt7", rating=3, movie_title="Seven")

    rating = await recompute_movie_rating("tt7", title="Seven")

    movie = await Movie.find_one(Movie.movie_id == "tt7")
    assert movie is not None
    assert movie.title == "Seven"
    assert movie.local_rating == rating == LocalRating(average=3.0, count=1)


async def test_recompute_is_idempotent_and_self_correcting():
    await upsert_aggregate_rating("tt8", LocalRating(average=1.0, count=99))
    for i, rating in enumerate([2, 5]):
        author = await make_user(f"fan{i}")
        await make_review(author, movie="tt8", rating=rating)

    await recompute_movie_rating("tt8")
    await recompute_movie_rating("tt8")

    movie = await Movie.find_one(Movie.movie_id == "tt8")
    assert movie.local_rating.average == 3.5
    assert movie.local_rating.count == 2
    assert await Movie.find(Movie.movie_id == "tt8").count() == 1


async def test_recompute_failure_is_swallowed(mocker, caplog):
    mocker.patch.object(Review, "find", side_effect=RuntimeError("db down"))

    assert await recompute_movie_rating("tt1") is None
    assert "Error updating local rating for movie tt1" in caplog.text


async def test_upsert_keeps_catalog_fields_of_existing_movie():
    await Movie(movie_id="tt9", title="Nine", views=12).insert()

    movie = await upsert_aggregate_rating("tt9", LocalRating(average=2.5, count=4), title="Other")

    assert movie.local_rating == LocalRating(average=2.5, count=4)
    assert movie.title == "Nine"
    assert movie.views == 12
    assert await Movie.find(Movie.movie_id == "tt9").count() == 1


async def test_upsert_that_loses_the_insert_race_updates_the_winner(mocker):
    real_find_one = Movie.find_one
    calls = []

    class RacedQuery:
        def update(self, *args, **kwargs):
            async def run():
                await Movie(movie_id="tt5", title="Five", local_rating=LocalRating(average=4.0, count=1)).insert()
                raise DuplicateKeyError("E11000 duplicate key error")
            return run()

    def find_one(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return RacedQuery()
        return real_find_one(*args, **kwargs)

    mocker.patch.object(Movie, "find_one", side_effect=find_one)

    movie = await upsert_aggregate_rating("tt5", LocalRating(average=4.5, count=2))

    assert movie.local_rating == LocalRating(average=4.5, count=2)
    assert movie.title == "Five"
    assert await Movie.find(Movie.movie_id == "tt5").count() == 1
