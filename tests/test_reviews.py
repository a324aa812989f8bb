from datetime import timedelta

import pytest
from beanie import PydanticObjectId

from cinecritic import reviews as review_service
from cinecritic.exceptions import Forbidden, InvalidInput, NotFound
from cinecritic.models import Review, User, utc_now
from cinecritic.schemas import ReviewCreateModel, ReviewEditModel

from conftest import make_review


def _payload(**overrides):
    data = {
        "movie": "tt0133093",
        "movie_title": "The Matrix",
        "movie_poster": "https://img.example.com/matrix.jpg",
        "rating": 5,
        "content": "Red pill, every time.",
    }
    data.update(overrides)
    return ReviewCreateModel(**data)


class TestCreateReview:
    async def test_creates_review_and_bumps_counter(self, alice):
        review = await review_service.create_review(alice, _payload())

        assert review.id is not None
        assert review.user == alice.id
        assert review.comments == []
        assert review.comment_count == 0
        refreshed = await User.get(alice.id)
        assert refreshed.stats.reviews_count == 1

    async def test_duplicate_review_for_same_movie_rejected(self, alice):
        await review_service.create_review(alice, _payload())
        with pytest.raises(InvalidInput):
            await review_service.create_review(alice, _payload(rating=1))

    async def test_blank_content_rejected(self, alice):
        with pytest.raises(InvalidInput):
            await review_service.create_review(alice, _payload(content="   "))

    def test_rating_bounds_enforced_by_schema(self):
        with pytest.raises(ValueError):
            _payload(rating=0)
        with pytest.raises(ValueError):
            _payload(rating=6)


class TestUpdateReview:
    async def test_author_updates_rating_and_content(self, alice):
        review = await make_review(alice, rating=2)

        updated = await review_service.update_review(
            review.id, alice.id, ReviewEditModel(rating=4, content="Grew on me")
        )

        assert updated.rating == 4
        assert updated.content == "Grew on me"
        stored = await Review.get(review.id)
        assert stored.rating == 4
        assert stored.user == alice.id

    async def test_other_user_forbidden(self, alice, bob):
        review = await make_review(alice)
        with pytest.raises(Forbidden):
            await review_service.update_review(review.id, bob.id, ReviewEditModel(rating=1))

    async def test_no_fields_rejected(self, alice):
        review = await make_review(alice)
        with pytest.raises(InvalidInput):
            await review_service.update_review(review.id, alice.id, ReviewEditModel())


class TestDeleteReview:
    async def test_author_deletes_and_counter_decrements(self, alice):
        review = await review_service.create_review(alice, _payload())

        await review_service.delete_review(review.id, alice.id)

        assert await Review.get(review.id) is None
        assert (await User.get(alice.id)).stats.reviews_count == 0

    async def test_other_user_forbidden(self, alice, bob):
        review = await make_review(alice)
        with pytest.raises(Forbidden):
            await review_service.delete_review(review.id, bob.id)
        assert await Review.get(review.id) is not None

    async def test_missing_review(self, alice):
        with pytest.raises(NotFound):
            await review_service.delete_review(PydanticObjectId(), alice.id)


class TestLikes:
    async def test_like_is_idempotent_and_unlike_removes(self, alice, bob):
        review = await make_review(alice)

        await review_service.toggle_like(review.id, bob.id, "like")
        likes = await review_service.toggle_like(review.id, bob.id, "like")
        assert likes == [bob.id]

        likes = await review_service.toggle_like(review.id, bob.id, "unlike")
        assert likes == []

    @pytest.mark.parametrize("action", [None, "", "love"])
    async def test_invalid_action(self, alice, action):
        review = await make_review(alice)
        with pytest.raises(InvalidInput):
            await review_service.toggle_like(review.id, alice.id, action)


async def test_list_reviews_filters_and_orders_newest_first(alice, bob):
    old = await make_review(alice, movie="tt1", rating=2, created_at=utc_now() - timedelta(hours=1))
    new = await make_review(bob, movie="tt1", rating=5)
    await make_review(bob, movie="tt2", rating=5)

    reviews, total = await review_service.list_reviews(movie="tt1")
    assert total == 2
    assert [r.id for r in reviews] == [new.id, old.id]

    reviews, total = await review_service.list_reviews(movie="tt1", min_rating=4)
    assert [r.id for r in reviews] == [new.id]

    reviews, total = await review_service.list_reviews(user=str(bob.id))
    assert total == 2
