"""Tests for the pure comment-tree helpers (no database writes)."""

from beanie import PydanticObjectId

from cinecritic.comments import count_nodes, extract_mentions, resolve
from cinecritic.models import Review

from conftest import make_comment, make_user


class TestExtractMentions:
    def test_leading_mention(self):
        assert extract_mentions("@carol looks great") == ["carol"]

    def test_inline_and_duplicate_mentions(self):
        assert extract_mentions("thanks @bob and @carol, @bob again") == ["bob", "carol"]

    def test_no_mentions(self):
        assert extract_mentions("no handles here, email me at x") == []

    def test_empty_content(self):
        assert extract_mentions("") == []


class TestResolve:
    async def test_finds_top_level_then_reply(self, alice):
        first = make_comment(alice, "first")
        second = make_comment(alice, "second")
        reply = make_comment(alice, "reply", parent=second)
        second.replies.append(reply)
        review = Review(
            user=alice.id, movie="tt1", movie_title="M", rating=3, content="c",
            comments=[first, second],
        )

        top = resolve(review, second.id)
        assert top.comment is second
        assert top.parent is None
        assert top.index == 1
        assert not top.is_reply

        nested = resolve(review, reply.id)
        assert nested.comment is reply
        assert nested.parent is second
        assert nested.index == 0
        assert nested.is_reply

    async def test_missing_id_returns_none(self, alice):
        review = Review(
            user=alice.id, movie="tt1", movie_title="M", rating=3, content="c",
            comments=[make_comment(alice)],
        )
        assert resolve(review, PydanticObjectId()) is None


async def test_count_nodes_includes_replies():
    user = await make_user("dora")
    parent = make_comment(user)
    parent.replies.extend([make_comment(user, parent=parent), make_comment(user, parent=parent)])
    assert count_nodes([parent, make_comment(user)]) == 4
    assert count_nodes([]) == 0
