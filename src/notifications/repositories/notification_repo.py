"""Notification repository: predicate composition, aggregates and scoped upserts."""

from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, case, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from notifications.db.models.notification import NotificationRow
from notifications.models.enums import ReadFilter, SavedFilter
from notifications.models.notification import Notification, NotificationPayload, as_utc
from notifications.models.query import NotificationQuery
from notifications.repositories.base import BaseRepository

# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE against a partial index
UPSERT_DIALECTS = ("postgresql", "sqlite")

_PAYLOAD_COLUMNS = ("title", "description", "link", "severity", "topic", "icon")


def row_to_notification(row: NotificationRow) -> Notification:
    """Map a stored row onto a detached domain record."""
    return Notification(
        id=row.id,
        user=row.user,
        origin=row.origin,
        created=as_utc(row.created),
        saved=as_utc(row.saved),
        read=as_utc(row.read),
        updated=as_utc(row.updated),
        payload=NotificationPayload(
            title=row.title,
            description=row.description,
            link=row.link,
            severity=row.severity,
            topic=row.topic,
            scope=row.scope,
            icon=row.icon,
        ),
    )


def notification_to_values(notification: Notification) -> dict[str, Any]:
    payload = notification.payload
    return {
        "id": notification.id,
        "user": notification.user,
        "origin": notification.origin,
        "created": notification.created,
        "saved": notification.saved,
        "read": notification.read,
        "updated": notification.updated,
        "title": payload.title,
        "description": payload.description,
        "link": payload.link,
        "severity": payload.severity.value,
        "topic": payload.topic,
        "scope": payload.scope,
        "icon": payload.icon,
    }


def build_notification_filters(user: str, query: NotificationQuery) -> list[ColumnElement[bool]]:
    """Build the WHERE clause for a user's notifications.

    Every predicate is independent; the caller ANDs them into one statement
    so listing and counting share a single query plan.
    """
    conditions: list[ColumnElement[bool]] = [NotificationRow.user == user]

    if query.read == ReadFilter.READ:
        conditions.append(NotificationRow.read.is_not(None))
    elif query.read == ReadFilter.UNREAD:
        conditions.append(NotificationRow.read.is_(None))

    if query.saved == SavedFilter.SAVED:
        conditions.append(NotificationRow.saved.is_not(None))
    elif query.saved == SavedFilter.UNSAVED:
        conditions.append(NotificationRow.saved.is_(None))

    if query.created_after is not None:
        conditions.append(NotificationRow.created > query.created_after)

    if query.search:
        # autoescape keeps % and _ in user input literal
        conditions.append(
            or_(
                NotificationRow.title.icontains(query.search, autoescape=True),
                NotificationRow.description.icontains(query.search, autoescape=True),
            )
        )

    if query.topic:
        conditions.append(NotificationRow.topic == query.topic)

    if query.min_severity is not None:
        conditions.append(
            NotificationRow.severity.in_([s.value for s in query.min_severity.at_least()])
        )

    return conditions


class NotificationRepository(BaseRepository[NotificationRow]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, NotificationRow)

    async def get(self, notification_id: str) -> NotificationRow | None:
        return await self.get_by_id("id", notification_id)

    async def get_by_scope(
        self, user: str, origin: str, scope: str | None
    ) -> NotificationRow | None:
        # Unscoped rows are never deduplicated, so they have no scope identity
        if scope is None:
            return None
        stmt = select(NotificationRow).where(
            NotificationRow.user == user,
            NotificationRow.origin == origin,
            NotificationRow.scope == scope,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def scope_exists(self, user: str, origin: str, scope: str) -> bool:
        stmt = select(
            exists().where(
                NotificationRow.user == user,
                NotificationRow.origin == origin,
                NotificationRow.scope == scope,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def list_for_user(self, user: str, query: NotificationQuery) -> list[NotificationRow]:
        stmt = (
            select(NotificationRow)
            .where(*build_notification_filters(user, query))
            .order_by(NotificationRow.created.desc(), NotificationRow.id.desc())
            .offset(query.offset)
        )
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user: str, query: NotificationQuery) -> int:
        stmt = select(func.count(NotificationRow.id)).where(
            *build_notification_filters(user, query)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def status_counts(self, user: str) -> tuple[int, int]:
        """Return ``(unread, read)`` for ``user`` from a single statement."""
        stmt = select(
            func.count(case((NotificationRow.read.is_(None), 1))),
            func.count(NotificationRow.read),
        ).where(NotificationRow.user == user)
        result = await self.session.execute(stmt)
        unread, read = result.one()
        return unread or 0, read or 0

    async def insert(self, notification: Notification) -> NotificationRow:
        return await self.create(**notification_to_values(notification))

    async def upsert_scoped(self, notification: Notification, now: datetime) -> NotificationRow:
        """Insert ``notification`` or restore the row already holding its scope.

        One ``INSERT ... ON CONFLICT DO UPDATE`` statement, so concurrent
        writers for the same (user, origin, scope) converge on one row.
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            raise NotImplementedError(f"No native upsert for dialect '{dialect}'")

        stmt = insert(NotificationRow).values(**notification_to_values(notification))
        set_ = {column: getattr(stmt.excluded, column) for column in _PAYLOAD_COLUMNS}
        set_.update(read=None, updated=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user", "origin", "scope"],
            index_where=NotificationRow.scope.is_not(None),
            set_=set_,
        ).returning(NotificationRow)

        result = await self.session.scalars(
            stmt, execution_options={"populate_existing": True}
        )
        return result.one()

    async def restore(
        self, row: NotificationRow, payload: NotificationPayload, now: datetime
    ) -> NotificationRow:
        """Overwrite the payload of ``row`` and make it unread again.

        ``saved``, ``created`` and the dedup key (user, origin, scope) stay as they are.
        """
        return await self.update(
            row,
            title=payload.title,
            description=payload.description,
            link=payload.link,
            severity=payload.severity.value,
            topic=payload.topic,
            icon=payload.icon,
            read=None,
            updated=now,
        )

    async def set_read(self, ids: list[str], user: str, value: datetime | None) -> int:
        return await self._bulk_set(ids, user, read=value)

    async def set_saved(self, ids: list[str], user: str, value: datetime | None) -> int:
        return await self._bulk_set(ids, user, saved=value)

    async def _bulk_set(self, ids: list[str], user: str, **values: Any) -> int:
        """Update ``values`` on the rows in ``ids`` owned by ``user``; return the row count."""
        if not ids:
            return 0
        stmt = (
            update(NotificationRow)
            .where(NotificationRow.id.in_(ids), NotificationRow.user == user)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
