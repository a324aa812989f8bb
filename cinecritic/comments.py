"""Comments and replies embedded in a review.

A review owns an ordered list of top-level comments (newest first) and each
top-level comment owns an ordered list of replies (oldest first). Replies never
nest further, so every node is reachable by at most two index lookups.

Every mutation loads the review, resolves the target node once, changes it in
memory and writes the whole document back with a single ``save()``. Reviews use
Beanie's revision tracking, so a write that races another write to the same
review fails with ``Conflict`` instead of silently overwriting it. Likes are
written elsewhere with update operators; those writes also issue a new
revision, so they count as racing writes here.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from beanie import PydanticObjectId
from beanie.exceptions import RevisionIdWasChanged
from beanie.operators import In, Or

from .exceptions import Conflict, Forbidden, InvalidInput, NotFound
from .models import Comment, CommentAuthor, CommentBase, Reply, Review, User, utc_now
from .permissions import can_delete, can_edit
from .schemas import UserCommentEntry
from .utils import parse_object_id

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)")


@dataclass
class CommentPath:
    comment: CommentBase
    parent: Optional[Comment]
    index: int

    @property
    def is_reply(self) -> bool:
        return self.parent is not None


def extract_mentions(content: str) -> List[str]:
    """Usernames referenced as ``@name`` in ``content``, de-duplicated in order of appearance."""
    names: List[str] = []
    for name in MENTION_PATTERN.findall(content or ""):
        if name not in names:
            names.append(name)
    return names


def resolve(review: Review, comment_id: PydanticObjectId) -> Optional[CommentPath]:
    """Locate a comment or reply by id.

    Top-level comments are scanned first, then each comment's replies. The first
    match wins.
    """
    for index, comment in enumerate(review.comments):
        if comment.id == comment_id:
            return CommentPath(comment=comment, parent=None, index=index)

    for comment in review.comments:
        for index, reply in enumerate(comment.replies):
            if reply.id == comment_id:
                return CommentPath(comment=reply, parent=comment, index=index)

    return None


def count_nodes(comments: List[Comment]) -> int:
    return sum(1 + len(comment.replies) for comment in comments)


def _clean_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise InvalidInput("Comment content is required")
    return content.strip()


async def _load_review(review_id) -> Review:
    review = await Review.get(parse_object_id(review_id, "review id"))
    if not review:
        raise NotFound("Review not found")
    return review


async def _save(review: Review) -> None:
    review.comment_count = count_nodes(review.comments)
    try:
        await review.save()
    except RevisionIdWasChanged:
        logger.warning("Concurrent update on review %s rejected", review.id)
        raise Conflict()


async def resolve_mentions(usernames: List[str]) -> List[PydanticObjectId]:
    """Map usernames to user ids. Names without a matching user are dropped."""
    if not usernames:
        return []
    users = await User.find(In(User.username, usernames)).to_list()
    ids_by_name = {user.username: user.id for user in users}
    return [ids_by_name[name] for name in usernames if name in ids_by_name]


async def add_comment(
    review_id, author: User, content: Optional[str], parent_comment_id=None
) -> Union[Comment, Reply]:
    """Add a top-level comment, or a reply when ``parent_comment_id`` is given.

    The parent must be a top-level comment of the same review. Mention
    notifications are not sent here; the caller dispatches them once this
    returns.
    """
    content = _clean_content(content)
    parent_id = (
        parse_object_id(parent_comment_id, "parent comment id") if parent_comment_id else None
    )
    review = await _load_review(review_id)

    parent = None
    if parent_id is not None:
        parent = next((c for c in review.comments if c.id == parent_id), None)
        if parent is None:
            raise NotFound("Parent comment not found")

    mentions = await resolve_mentions(extract_mentions(content))

    snapshot = CommentAuthor.from_user(author)
    if parent is None:
        comment = Comment(user=snapshot, content=content, mentions=mentions)
        review.comments.insert(0, comment)
        review.comments_updated_at = comment.created_at
    else:
        comment = Reply(user=snapshot, content=content, mentions=mentions, parent_id=parent.id)
        parent.replies.append(comment)

    await _save(review)
    logger.info(
        "User %s added %s %s on review %s",
        author.id, "reply" if parent else "comment", comment.id, review.id,
    )
    return comment


async def edit_comment(
    review_id, comment_id, caller_id: PydanticObjectId, content: Optional[str]
) -> CommentBase:
    """Replace the content of a comment or reply. Only its author may do this."""
    content = _clean_content(content)
    target_id = parse_object_id(comment_id, "comment id")
    review = await _load_review(review_id)

    path = resolve(review, target_id)
    if path is None:
        raise NotFound("Comment not found")
    if not can_edit(path.comment, caller_id):
        raise Forbidden("Not authorized to edit this comment")

    path.comment.content = content
    path.comment.updated_at = utc_now()

    await _save(review)
    return path.comment


async def delete_comment(review_id, comment_id, caller_id: PydanticObjectId) -> int:
    """Remove a comment (with all of its replies) or a single reply.

    Allowed for the comment's author and for the author of the review. Returns
    the number of nodes removed.
    """
    target_id = parse_object_id(comment_id, "comment id")
    review = await _load_review(review_id)

    path = resolve(review, target_id)
    if path is None:
        raise NotFound("Comment not found")
    if not can_delete(path.comment, caller_id, review.user):
        raise Forbidden("Not authorized to delete this comment")

    if path.is_reply:
        del path.parent.replies[path.index]
        removed = 1
    else:
        removed = 1 + len(path.comment.replies)
        del review.comments[path.index]

    await _save(review)
    logger.info("User %s deleted %d node(s) from review %s", caller_id, removed, review.id)
    return removed


async def list_comments(review_id, skip: int = 0, limit: int = 50) -> Tuple[List[Comment], int]:
    review = await _load_review(review_id)
    return review.comments[skip:skip + limit], len(review.comments)


async def list_user_comments(
    user_id, page: int = 1, limit: int = 20
) -> Tuple[List[UserCommentEntry], int]:
    """Every comment and reply written by a user, newest first."""
    uid = parse_object_id(user_id, "user id")
    reviews = await Review.find(
        Or({"comments.user.id": uid}, {"comments.replies.user.id": uid})
    ).to_list()

    entries: List[UserCommentEntry] = []
    for review in reviews:
        for comment in review.comments:
            if comment.user.id == uid:
                entries.append(UserCommentEntry.from_comment(review, comment))
            for reply in comment.replies:
                if reply.user.id == uid:
                    entries.append(UserCommentEntry.from_comment(review, reply))

    entries.sort(key=lambda entry: entry.created_at, reverse=True)
    skip = (page - 1) * limit
    return entries[skip:skip + limit], len(entries)
