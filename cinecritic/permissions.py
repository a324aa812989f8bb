from beanie import PydanticObjectId

from .models import CommentBase, Review


def can_edit(record: CommentBase, caller_id: PydanticObjectId) -> bool:
    """Only the author of a comment or reply may change its content."""
    return record.user.id == caller_id


def can_delete(record: CommentBase, caller_id: PydanticObjectId, review_author_id: PydanticObjectId) -> bool:
    """The comment author, or the author of the review it sits under, may delete it."""
    return record.user.id == caller_id or caller_id == review_author_id


def can_modify_review(review: Review, caller_id: PydanticObjectId) -> bool:
    return review.user == caller_id
