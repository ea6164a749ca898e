"""Query parameters for listing notifications, plus the list view's date presets."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notifications.errors.exceptions import ValidationError
from notifications.models.enums import NotificationSeverity, ReadFilter, SavedFilter
from notifications.models.notification import as_utc

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CreatedAfterOption:
    label: str
    # None means "no lower bound"; resolves to the Unix epoch
    delta: timedelta | None

    def get_date(self, now: datetime | None = None) -> datetime:
        if self.delta is None:
            return EPOCH
        return (as_utc(now) or datetime.now(timezone.utc)) - self.delta


CREATED_AFTER_OPTIONS = MappingProxyType(
    {
        "last24h": CreatedAfterOption("Last 24h", timedelta(hours=24)),
        "lastWeek": CreatedAfterOption("Last week", timedelta(days=7)),
        "all": CreatedAfterOption("Any time", None),
    }
)


def resolve_created_after(key: str, now: datetime | None = None) -> datetime:
    """Turn a preset key (``last24h``, ``lastWeek``, ``all``) into a lower bound."""
    option = CREATED_AFTER_OPTIONS.get(key)
    if option is None:
        raise ValidationError(
            f"Unknown created-after preset '{key}'",
            details={"expected": list(CREATED_AFTER_OPTIONS)},
        )
    return option.get_date(now)


class NotificationQuery(BaseModel):
    """Filters for listing a user's notifications; all of them are ANDed."""

    model_config = ConfigDict(extra="forbid")

    read: ReadFilter = ReadFilter.ANY
    saved: SavedFilter = SavedFilter.ANY
    # Exclusive: only records created strictly after this instant match
    created_after: datetime | None = None
    search: str | None = None
    topic: str | None = None
    min_severity: NotificationSeverity | None = None
    offset: int = Field(0, ge=0)
    limit: int | None = Field(None, ge=1)

    @field_validator("created_after")
    @classmethod
    def _normalize_created_after(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    @field_validator("search", "topic")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @classmethod
    def from_preset(
        cls,
        unread_only: bool | None = None,
        created_after: str | None = None,
        search: str | None = None,
        now: datetime | None = None,
        **kwargs,
    ) -> "NotificationQuery":
        """Build a query from the list view's filter values."""
        return cls(
            read=ReadFilter.from_unread_only(unread_only),
            created_after=resolve_created_after(created_after, now) if created_after else None,
            search=search,
            **kwargs,
        )
