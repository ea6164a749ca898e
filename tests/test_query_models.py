"""Test notification Pydantic models, query parameters and created-after presets."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from notifications.errors.exceptions import ValidationError
from notifications.models.enums import NotificationSeverity, ReadFilter, SavedFilter
from notifications.models.notification import Notification, NotificationPayload, NotificationStatus
from notifications.models.query import (
    CREATED_AFTER_OPTIONS,
    EPOCH,
    NotificationQuery,
    resolve_created_after,
)

NOW = datetime(2026, 5, 10, 8, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "unread_only,expected",
    [(True, ReadFilter.UNREAD), (False, ReadFilter.READ), (None, ReadFilter.ANY)],
)
def test_read_filter_from_unread_only(unread_only, expected):
    assert ReadFilter.from_unread_only(unread_only) is expected


def test_severity_at_least():
    assert NotificationSeverity.CRITICAL.at_least() == [NotificationSeverity.CRITICAL]
    assert NotificationSeverity.NORMAL.at_least() == [
        NotificationSeverity.CRITICAL,
        NotificationSeverity.HIGH,
        NotificationSeverity.NORMAL,
    ]
    assert len(NotificationSeverity.LOW.at_least()) == 4


def test_created_after_presets():
    assert list(CREATED_AFTER_OPTIONS) == ["last24h", "lastWeek", "all"]
    assert CREATED_AFTER_OPTIONS["lastWeek"].label == "Last week"
    assert resolve_created_after("last24h", NOW) == NOW - timedelta(hours=24)
    assert resolve_created_after("lastWeek", NOW) == NOW - timedelta(days=7)
    assert resolve_created_after("all", NOW) == EPOCH


def test_created_after_presets_are_read_only():
    with pytest.raises(TypeError):
        CREATED_AFTER_OPTIONS["forever"] = CREATED_AFTER_OPTIONS["all"]


def test_unknown_created_after_preset():
    with pytest.raises(ValidationError) as exc_info:
        resolve_created_after("lastMonth", NOW)
    assert exc_info.value.details["expected"] == ["last24h", "lastWeek", "all"]


def test_query_from_preset():
    query = NotificationQuery.from_preset(
        unread_only=True, created_after="last24h", search="  deploy  ", now=NOW, limit=10
    )
    assert query.read is ReadFilter.UNREAD
    assert query.created_after == NOW - timedelta(hours=24)
    assert query.search == "deploy"
    assert query.limit == 10
    assert query.saved is SavedFilter.ANY


def test_query_defaults_do_not_filter():
    query = NotificationQuery()
    assert query.read is ReadFilter.ANY
    assert query.saved is SavedFilter.ANY
    assert query.created_after is None
    assert query.search is None
    assert query.offset == 0
    assert query.limit is None


def test_query_blank_search_is_ignored():
    assert NotificationQuery(search="   ").search is None


def test_query_rejects_bad_pagination():
    with pytest.raises(PydanticValidationError):
        NotificationQuery(offset=-1)
    with pytest.raises(PydanticValidationError):
        NotificationQuery(limit=0)


def test_query_rejects_unknown_fields():
    with pytest.raises(PydanticValidationError):
        NotificationQuery(unread_only=True)


def test_notification_timestamps_are_utc():
    cet = timezone(timedelta(hours=1))
    notification = Notification(
        user="user:default/john.doe",
        origin="plugin-test",
        created=datetime(2026, 1, 1, 13, 0, tzinfo=cet),
        read=datetime(2026, 1, 1, 12, 30),
        payload=NotificationPayload(title="Hello", severity="low"),
    )
    assert notification.created == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert notification.created.tzinfo == timezone.utc
    assert notification.read.tzinfo == timezone.utc
    assert notification.is_read
    assert not notification.is_saved


def test_notification_generates_id():
    payload = NotificationPayload(title="Hello", severity="normal")
    first = Notification(user="u", origin="o", payload=payload)
    second = Notification(user="u", origin="o", payload=payload)
    assert first.id and second.id and first.id != second.id


@pytest.mark.parametrize("user,origin", [("   ", "plugin-test"), ("user:default/john.doe", "\t")])
def test_notification_rejects_blank_user_and_origin(user, origin):
    with pytest.raises(PydanticValidationError):
        Notification(
            user=user, origin=origin, payload=NotificationPayload(title="Hello", severity="low")
        )


def test_payload_requires_title_and_severity():
    with pytest.raises(PydanticValidationError):
        NotificationPayload(severity="normal")
    with pytest.raises(PydanticValidationError):
        NotificationPayload(title="", severity="normal")
    with pytest.raises(PydanticValidationError):
        NotificationPayload(title="Hello")


def test_status_total():
    assert NotificationStatus(unread=2, read=5).total == 7
