"""Database-backed notification store.

The store is a stateless façade over an ``async_sessionmaker``: every
operation runs in its own session and transaction, so one instance can be
shared by any number of concurrent tasks.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, TypeVar

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notifications.errors.exceptions import ConflictError, NotFoundError, ValidationError
from notifications.models.notification import Notification, NotificationPayload, NotificationStatus
from notifications.models.query import NotificationQuery
from notifications.repositories.notification_repo import (
    UPSERT_DIALECTS,
    NotificationRepository,
    row_to_notification,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)


def _validate(model_class: type[M], value: M | Mapping[str, Any] | None) -> M:
    """Coerce ``value`` into ``model_class``, reporting problems as ValidationError."""
    if isinstance(value, model_class):
        return value
    try:
        return model_class.model_validate(value if value is not None else {})
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"Invalid {model_class.__name__}",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def _require(name: str, value: str | None) -> str:
    if not value or not value.strip():
        raise ValidationError(f"'{name}' is required")
    return value


def _require_ids(ids: Iterable[str]) -> list[str]:
    if isinstance(ids, str):
        raise ValidationError("'ids' must be a list of notification ids, not a string")
    return list(dict.fromkeys(ids))


class DatabaseNotificationsStore:
    """Sole authority over reads and writes of notification records."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_notifications(
        self, user: str, query: NotificationQuery | Mapping[str, Any] | None = None
    ) -> list[Notification]:
        """List ``user``'s notifications matching ``query``, newest first."""
        _require("user", user)
        query = _validate(NotificationQuery, query)
        async with self._session_factory() as session:
            rows = await NotificationRepository(session).list_for_user(user, query)
        logger.debug("Listed %d notifications (user=%s)", len(rows), user)
        return [row_to_notification(row) for row in rows]

    async def count_notifications(
        self, user: str, query: NotificationQuery | Mapping[str, Any] | None = None
    ) -> int:
        """Count ``user``'s notifications matching ``query``; offset and limit are ignored."""
        _require("user", user)
        query = _validate(NotificationQuery, query)
        async with self._session_factory() as session:
            return await NotificationRepository(session).count_for_user(user, query)

    async def get_notification(self, notification_id: str) -> Notification | None:
        async with self._session_factory() as session:
            row = await NotificationRepository(session).get(notification_id)
        return row_to_notification(row) if row is not None else None

    async def get_status(self, user: str) -> NotificationStatus:
        _require("user", user)
        async with self._session_factory() as session:
            unread, read = await NotificationRepository(session).status_counts(user)
        return NotificationStatus(unread=unread, read=read)

    async def get_existing_scope_notification(
        self, user: str, origin: str, scope: str | None
    ) -> Notification | None:
        """Return the record holding (user, origin, scope), or None; a None scope never matches."""
        _require("user", user)
        _require("origin", origin)
        async with self._session_factory() as session:
            row = await NotificationRepository(session).get_by_scope(user, origin, scope)
        return row_to_notification(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_notification(
        self, notification: Notification | Mapping[str, Any]
    ) -> Notification:
        """Persist a notification.

        Without a scope this is a plain insert. With a scope, an existing
        record for the same (user, origin, scope) is restored instead and
        returned with its original id.
        """
        notification = _validate(Notification, notification)
        if notification.payload.scope is None:
            async with self._session_factory() as session:
                async with session.begin():
                    row = await NotificationRepository(session).insert(notification)
                    saved = row_to_notification(row)
            logger.info("Created notification %s (user=%s, origin=%s)", saved.id, saved.user, saved.origin)
            return saved

        try:
            saved = await self._save_scoped(notification)
        except ConflictError:
            # Another writer inserted the same scope between our lookup and
            # insert; the second attempt finds its row and restores it.
            logger.warning(
                "Scope conflict for notification %s (scope=%s), retrying",
                notification.id,
                notification.payload.scope,
            )
            saved = await self._save_scoped(notification)

        logger.info(
            "Saved scoped notification %s (user=%s, origin=%s, scope=%s)",
            saved.id,
            saved.user,
            saved.origin,
            saved.payload.scope,
        )
        return saved

    async def _save_scoped(self, notification: Notification) -> Notification:
        try:
            return await self._write_scoped(notification)
        except IntegrityError as exc:
            # A lost race leaves another row holding the scope; other
            # integrity errors, such as a duplicate id, propagate unchanged.
            if not await self._scope_taken(notification):
                raise
            raise ConflictError(
                "Scope already claimed by a concurrent writer",
                details={
                    "user": notification.user,
                    "origin": notification.origin,
                    "scope": notification.payload.scope,
                },
            ) from exc

    async def _scope_taken(self, notification: Notification) -> bool:
        async with self._session_factory() as session:
            return await NotificationRepository(session).scope_exists(
                notification.user, notification.origin, notification.payload.scope
            )

    async def _write_scoped(self, notification: Notification) -> Notification:
        async with self._session_factory() as session:
            async with session.begin():
                repo = NotificationRepository(session)
                if session.get_bind().dialect.name in UPSERT_DIALECTS:
                    row = await repo.upsert_scoped(notification, self._now())
                    return row_to_notification(row)

                existing = await repo.get_by_scope(
                    notification.user, notification.origin, notification.payload.scope
                )
                if existing is not None:
                    row = await repo.restore(existing, notification.payload, self._now())
                    return row_to_notification(row)
                row = await repo.insert(notification)
                return row_to_notification(row)

    async def restore_existing_notification(
        self,
        notification_id: str,
        notification: Notification | NotificationPayload | Mapping[str, Any],
    ) -> Notification:
        """Overwrite the payload of record ``notification_id`` and mark it unread.

        ``notification`` may be a full notification or just its payload; only
        payload fields are taken from it. Raises NotFoundError when no record
        has that id.
        """
        payload = self._payload_of(notification)
        async with self._session_factory() as session:
            async with session.begin():
                repo = NotificationRepository(session)
                row = await repo.get(notification_id)
                if row is None:
                    raise NotFoundError("Notification", notification_id)
                row = await repo.restore(row, payload, self._now())
                restored = row_to_notification(row)
        logger.info("Restored notification %s (user=%s)", restored.id, restored.user)
        return restored

    @staticmethod
    def _payload_of(
        notification: Notification | NotificationPayload | Mapping[str, Any],
    ) -> NotificationPayload:
        if isinstance(notification, Notification):
            return notification.payload
        if isinstance(notification, Mapping) and "payload" in notification:
            return _validate(NotificationPayload, notification["payload"])
        return _validate(NotificationPayload, notification)

    async def mark_read(self, ids: Iterable[str], user: str) -> int:
        """Set ``read`` on the given ids owned by ``user``; returns the number of rows changed."""
        return await self._mark(ids, user, "read", self._now())

    async def mark_unread(self, ids: Iterable[str], user: str) -> int:
        return await self._mark(ids, user, "read", None)

    async def mark_saved(self, ids: Iterable[str], user: str) -> int:
        return await self._mark(ids, user, "saved", self._now())

    async def mark_unsaved(self, ids: Iterable[str], user: str) -> int:
        return await self._mark(ids, user, "saved", None)

    async def _mark(
        self, ids: Iterable[str], user: str, flag: str, value: datetime | None
    ) -> int:
        _require("user", user)
        ids = _require_ids(ids)
        if not ids:
            return 0
        async with self._session_factory() as session:
            async with session.begin():
                repo = NotificationRepository(session)
                if flag == "read":
                    count = await repo.set_read(ids, user, value)
                else:
                    count = await repo.set_saved(ids, user, value)
        logger.info(
            "Marked %d/%d notifications %s%s (user=%s)",
            count,
            len(ids),
            "" if value is not None else "un",
            flag,
            user,
        )
        return count
