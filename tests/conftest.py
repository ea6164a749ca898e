"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notifications.db.engine import create_db_engine, create_schema, create_session_factory
from notifications.db.models.notification import NotificationRow
from notifications.services.store import DatabaseNotificationsStore

USER = "user:default/john.doe"
OTHER_USER = "user:default/jane.doe"
ORIGIN = "plugin-test"


@pytest.fixture
def database_url(tmp_path):
    # A file database so concurrent sessions share the same data
    return f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}"


@pytest.fixture
async def db_engine(database_url):
    """Create a SQLite async engine with the notification schema."""
    engine = create_db_engine(database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory):
    return DatabaseNotificationsStore(session_factory)


@pytest.fixture
def insert_notification(db_session: AsyncSession):
    """Insert a raw row, bypassing the store, and return its id."""

    async def _insert(
        notification_id: str,
        user: str = USER,
        origin: str = ORIGIN,
        title: str = "Notification 1",
        created: datetime | None = None,
        **columns,
    ) -> str:
        columns.setdefault("link", "/catalog")
        columns.setdefault("severity", "normal")
        db_session.add(
            NotificationRow(
                id=notification_id,
                user=user,
                origin=origin,
                title=title,
                created=created or datetime.now(timezone.utc),
                **columns,
            )
        )
        await db_session.commit()
        return notification_id

    return _insert
