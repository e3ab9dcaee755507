"""Title and message templates for in-app notifications."""

from typing import Dict, Tuple

from src.c1_board_enums import NotificationType

TEMPLATES: Dict[NotificationType, Tuple[str, str]] = {
    NotificationType.TASK_CREATED: (
        "New card created",
        '{actor_name} created "{card_title}" in {column_name}',
    ),
    NotificationType.TASK_MOVED: (
        "Card moved",
        '{actor_name} moved "{card_title}" to {to_column_name}',
    ),
    NotificationType.TASK_UPDATED: (
        "Your card was moved",
        '{actor_name} moved "{card_title}" from {from_column_name} to {to_column_name}',
    ),
}


def render_notification(notification_type: NotificationType, **context) -> Tuple[str, str]:
    """Render ``(title, message)`` for a notification type.

    Raises:
        KeyError: unknown type or a placeholder missing from ``context``
    """
    title, message = TEMPLATES[notification_type]
    return title, message.format(**context)
