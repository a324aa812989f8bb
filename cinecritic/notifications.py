import logging
from typing import Iterable, List

from beanie import PydanticObjectId
from beanie.operators import Set

from .models import CommentAuthor, Notification

logger = logging.getLogger(__name__)


async def notify_mentions(
    sender: CommentAuthor,
    review_id: PydanticObjectId,
    comment_id: PydanticObjectId,
    mentioned_ids: Iterable[PydanticObjectId],
) -> int:
    """Write one ``mention`` notification per mentioned user other than the sender.

    Runs after the comment is stored. Errors are logged and never raised, so a
    broken notification write cannot undo or fail the comment itself. Returns the
    number of notifications written.
    """
    recipients = []
    for recipient_id in mentioned_ids:
        if recipient_id != sender.id and recipient_id not in recipients:
            recipients.append(recipient_id)

    if not recipients:
        return 0

    notifications = [
        Notification(
            recipient_id=recipient_id,
            sender_id=sender.id,
            content=f"{sender.name} mentioned you in a comment",
            review_id=review_id,
            comment_id=comment_id,
        )
        for recipient_id in recipients
    ]

    try:
        await Notification.insert_many(notifications)
    except Exception:
        logger.exception("Failed to create mention notifications for comment %s", comment_id)
        return 0

    logger.info("Sent %d mention notification(s) for comment %s", len(notifications), comment_id)
    return len(notifications)


async def list_notifications(
    user_id: PydanticObjectId, unread_only: bool = False, limit: int = 50
) -> List[Notification]:
    query = Notification.find(Notification.recipient_id == user_id)
    if unread_only:
        query = query.find(Notification.read == False)  # noqa: E712
    return await query.sort(-Notification.created_at).limit(limit).to_list()


async def mark_all_read(user_id: PydanticObjectId) -> int:
    result = await Notification.find(
        Notification.recipient_id == user_id,
        Notification.read == False,  # noqa: E712
    ).update(Set({Notification.read: True}))
    return result.modified_count if result is not None else 0
