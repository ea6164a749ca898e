"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from notifications.db.models.notification import NotificationRow

__all__ = [
    "NotificationRow",
]
