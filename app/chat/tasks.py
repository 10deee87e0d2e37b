"""
Celery tasks for chat app.

This module defines async tasks for:
- Pushing out-of-band notifications to a user's private room (for
  example an application status change raised by another subsystem)

Related files:
    - rooms.py: Room naming and broadcast
    - consumers.py: ChatConsumer.chat_notification relays the event

Usage:
    from chat.tasks import notify_user

    notify_user.delay(user.id, "application.status_changed", {"status": "shortlisted"})
"""

import logging

from celery import shared_task

from chat.rooms import rooms

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def notify_user(self, user_id: int, event: str, data: dict | None = None) -> None:
    """
    Send a notification event to every connection of a user.

    Delivery is best-effort: users with no open connection simply miss it.

    Args:
        user_id: Recipient user id
        event: Notification name, e.g. "application.status_changed"
        data: JSON-serializable payload
    """
    rooms.broadcast_sync(
        rooms.user_room(user_id),
        {
            "type": "chat.notification",
            "event": event,
            "data": data or {},
        },
    )
    logger.info(f"Sent {event} notification to user {user_id}")
