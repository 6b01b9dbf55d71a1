from uuid import UUID

from opentribe.core.modules.notification.models import NotificationType


def comment_notification_recipients(
    actor_id: UUID, post_author_id: UUID, parent_author_id: UUID | None = None
) -> list[tuple[UUID, NotificationType]]:
    """Who gets notified about a new comment, and how.

    The post author gets a `comment` notification, the author of the replied-to
    comment a `reply` notification. Nobody is notified about their own action,
    and a profile is never notified twice for the same comment.
    """
    recipients: list[tuple[UUID, NotificationType]] = []
    if post_author_id != actor_id:
        recipients.append((post_author_id, NotificationType.COMMENT))
    if parent_author_id is not None and parent_author_id not in (actor_id, post_author_id):
        recipients.append((parent_author_id, NotificationType.REPLY))
    return recipients
