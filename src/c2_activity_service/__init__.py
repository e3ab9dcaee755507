"""C2 Activity Service - activity log and notifications for board events."""
from src.c2_activity_service.activity_service import ActivityService
from src.c2_activity_service.notification_service import NotificationService
from src.c2_activity_service.notification_templates import TEMPLATES, render_notification

__all__ = ["ActivityService", "NotificationService", "TEMPLATES", "render_notification"]
