"""Email channel: HTML notification mail sent through the email endpoint."""

from collections.abc import Sequence
from html import escape
from typing import Any

from domain.entities.notification import (
    ALL_PRIORITIES,
    TYPE_ICONS,
    Notification,
    NotificationChannel,
    NotificationPriority,
)
from infrastructure.channels.http_channel import HttpChannelStrategy

MAX_SUBJECT_LENGTH = 200

PRIORITY_COLORS: dict[NotificationPriority, str] = {
    NotificationPriority.LOW: "#6b7280",
    NotificationPriority.MEDIUM: "#f59e0b",
    NotificationPriority.HIGH: "#ef4444",
    NotificationPriority.URGENT: "#dc2626",
}

_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>
      body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.6;
             color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }}
      .header {{ background: #10b981; color: white; padding: 30px; text-align: center;
                 border-radius: 8px 8px 0 0; }}
      .icon {{ font-size: 48px; margin-bottom: 10px; }}
      .content {{ background: white; padding: 30px; border: 1px solid #e5e7eb; border-top: none; }}
      .priority-badge {{ display: inline-block; padding: 4px 12px; border-radius: 12px;
                         font-size: 12px; font-weight: 600; background: {color}; color: white; }}
      .message {{ font-size: 16px; margin: 20px 0; }}
      .action-button {{ display: inline-block; padding: 12px 24px; background: #10b981;
                        color: white; text-decoration: none; border-radius: 6px; font-weight: 600; }}
      .footer {{ text-align: center; padding: 20px; color: #6b7280; font-size: 14px; }}
    </style>
  </head>
  <body>
    <div class="header">
      <div class="icon">{icon}</div>
      <h1 style="margin: 0;">{title}</h1>
    </div>
    <div class="content">
      <div class="priority-badge">{priority} PRIORITY</div>
      <div class="message">{message}</div>
      {action}
    </div>
    <div class="footer">
      <p>This is an automated notification from Personal Expense Manager</p>
      <p>To manage your notification preferences, visit your profile settings</p>
    </div>
  </body>
</html>
"""


class EmailNotificationStrategy(HttpChannelStrategy):
    """Email delivery; accepts every priority."""

    channel = NotificationChannel.EMAIL

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        return ALL_PRIORITIES

    def validate(self, notification: Notification) -> str | None:
        if not notification.title or not notification.title.strip():
            return "Email subject is required"
        if not notification.message or not notification.message.strip():
            return "Email content is required"
        if len(notification.title) > MAX_SUBJECT_LENGTH:
            return f"Email subject too long (max {MAX_SUBJECT_LENGTH} characters)"
        return None

    def build_payload(self, notification: Notification) -> dict[str, Any]:
        return {
            "notificationId": notification.id,
            "userId": notification.user_id,
            "subject": notification.title,
            "content": self.format_content(notification),
            "priority": notification.priority.value,
        }

    def format_content(self, notification: Notification) -> str:
        """Render the notification as an HTML email body."""
        return _EMAIL_TEMPLATE.format(
            color=PRIORITY_COLORS.get(notification.priority, PRIORITY_COLORS[NotificationPriority.MEDIUM]),
            icon=TYPE_ICONS.get(notification.type, "📬"),
            title=escape(notification.title),
            priority=notification.priority.value,
            message=escape(notification.message),
            action=self._action_button(notification),
        )

    @staticmethod
    def _action_button(notification: Notification) -> str:
        data = notification.data or {}
        url = data.get("actionUrl")
        if not url:
            return ""
        text = data.get("actionText") or "View Details"
        return (
            f'<a href="{escape(str(url), quote=True)}" class="action-button">'
            f"{escape(str(text))}</a>"
        )
