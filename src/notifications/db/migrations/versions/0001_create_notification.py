"""Create the notification table.

One row per notification and user. read/saved/updated are nullable
timestamps; NULL means the flag is not set. The partial unique index on
(user, origin, scope) backs scope deduplication and the ON CONFLICT target
used when saving scoped notifications.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notification",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("origin", sa.String(255), nullable=False),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("saved", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("link", sa.Text(), nullable=True),
        sa.Column("severity", sa.String(8), nullable=False),
        sa.Column("topic", sa.String(255), nullable=True),
        sa.Column("scope", sa.String(255), nullable=True),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_notification"),
    )
    op.create_index("ix_notification_user", "notification", ["user"], unique=False)
    op.create_index("ix_notification_user_created", "notification", ["user", "created"], unique=False)
    op.create_index(
        "uq_notification_user_origin_scope",
        "notification",
        ["user", "origin", "scope"],
        unique=True,
        postgresql_where=sa.text("scope IS NOT NULL"),
        sqlite_where=sa.text("scope IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_notification_user_origin_scope", table_name="notification")
    op.drop_index("ix_notification_user_created", table_name="notification")
    op.drop_index("ix_notification_user", table_name="notification")
    op.drop_table("notification")
