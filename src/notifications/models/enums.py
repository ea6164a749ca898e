"""String enums shared by the store and its callers."""

from enum import StrEnum


class NotificationSeverity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Urgency rank, 0 being the most urgent."""
        return _SEVERITY_ORDER.index(self)

    def at_least(self) -> list["NotificationSeverity"]:
        """All severities at least as urgent as this one."""
        return list(_SEVERITY_ORDER[: self.rank + 1])


_SEVERITY_ORDER = (
    NotificationSeverity.CRITICAL,
    NotificationSeverity.HIGH,
    NotificationSeverity.NORMAL,
    NotificationSeverity.LOW,
)


class ReadFilter(StrEnum):
    """Read-state filter; ANY means the read column is not filtered at all."""

    ANY = "any"
    READ = "read"
    UNREAD = "unread"

    @classmethod
    def from_unread_only(cls, unread_only: bool | None) -> "ReadFilter":
        """Map the list view's ``unreadOnly`` flag onto an explicit filter."""
        if unread_only is None:
            return cls.ANY
        return cls.UNREAD if unread_only else cls.READ


class SavedFilter(StrEnum):
    ANY = "any"
    SAVED = "saved"
    UNSAVED = "unsaved"
