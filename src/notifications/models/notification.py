"""Pydantic models for notification records."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notifications.models.enums import NotificationSeverity
from notifications.services.id_generator import new_notification_id


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a timestamp to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class NotificationPayload(BaseModel):
    """User-visible content of a notification."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    link: str | None = None
    severity: NotificationSeverity
    topic: str | None = Field(None, max_length=255)
    scope: str | None = Field(None, max_length=255)
    icon: str | None = Field(None, max_length=255)


class Notification(BaseModel):
    """A notification as stored for one user.

    ``read``, ``saved`` and ``updated`` are flags expressed as timestamps:
    a non-null value means the flag is set.
    """

    model_config = ConfigDict(extra="forbid", from_attributes=True)

    id: str = Field(default_factory=new_notification_id, min_length=1, max_length=255)
    user: str = Field(..., min_length=1, max_length=255)
    origin: str = Field(..., min_length=1, max_length=255)
    created: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    saved: datetime | None = None
    read: datetime | None = None
    updated: datetime | None = None
    payload: NotificationPayload

    @field_validator("user", "origin")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("created", "saved", "read", "updated")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @property
    def is_read(self) -> bool:
        return self.read is not None

    @property
    def is_saved(self) -> bool:
        return self.saved is not None


class NotificationStatus(BaseModel):
    """Unread/read counts for one user."""

    model_config = ConfigDict(extra="forbid")

    unread: int = Field(0, ge=0)
    read: int = Field(0, ge=0)

    @property
    def total(self) -> int:
        return self.unread + self.read
