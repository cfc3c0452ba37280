"""ChipChat schema: identities, profiles, threads, messages, tasks, meetings.

Revision ID: 0001_chipchat_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_chipchat_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.DateTime(timezone=True), nullable=True)
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _fk(table: str, ondelete: str = "CASCADE") -> sa.ForeignKey:
    return sa.ForeignKey(f"{table}.id", ondelete=ondelete)


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # -----------------------------------------------------------------------
    # 1. Identity and profile
    # -----------------------------------------------------------------------

    op.create_table(
        "users",
        _uuid("id", primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("idx_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        _uuid("id", _fk("users"), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("full_name", sa.Text(), nullable=False, server_default=""),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("job_title", sa.Text(), nullable=True),
        sa.Column("company", sa.Text(), nullable=False, server_default=""),
        sa.Column("skills", postgresql.ARRAY(sa.VARCHAR()), nullable=False, server_default="{}"),
        sa.Column("interests", postgresql.ARRAY(sa.VARCHAR()), nullable=False, server_default="{}"),
        sa.Column("role", sa.Text(), nullable=False, server_default="member"),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("role IN ('admin', 'manager', 'member')", name="ck_profiles_role"),
    )
    op.create_index("idx_profiles_email", "profiles", ["email"])
    op.create_index("idx_profiles_pending", "profiles", ["is_approved"])

    # -----------------------------------------------------------------------
    # 2. Threads
    # -----------------------------------------------------------------------

    op.create_table(
        "threads",
        _uuid("id", primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.VARCHAR()), nullable=False, server_default="{}"),
        _uuid("created_by", _fk("profiles"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_threads_created_by", "threads", ["created_by"])
    op.create_index("idx_threads_updated_at", "threads", [sa.text("updated_at DESC")])

    op.create_table(
        "thread_members",
        _uuid("thread_id", _fk("threads"), primary_key=True),
        _uuid("user_id", _fk("profiles"), primary_key=True),
        _timestamp("joined_at"),
    )
    # Room guard lookup: (thread_id, user_id) is the primary key; this serves "my threads".
    op.create_index("idx_thread_members_user", "thread_members", ["user_id"])

    op.create_table(
        "messages",
        _uuid("id", primary_key=True),
        _uuid("thread_id", _fk("threads"), nullable=False),
        _uuid("user_id", _fk("profiles"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _uuid("parent_id", _fk("messages", ondelete="SET NULL"), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("mentions", postgresql.ARRAY(postgresql.UUID(as_uuid=True)), server_default="{}"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("idx_messages_thread_created", "messages", ["thread_id", sa.text("created_at DESC")])
    op.create_index("idx_messages_user", "messages", ["user_id"])

    # -----------------------------------------------------------------------
    # 3. Meetings and tasks (tasks may link a meeting)
    # -----------------------------------------------------------------------

    op.create_table(
        "meetings",
        _uuid("id", primary_key=True),
        _uuid("thread_id", _fk("threads"), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="scheduled"),
        _timestamp("started_at", nullable=True),
        _timestamp("ended_at", nullable=True),
        sa.Column("livekit_room_name", sa.Text(), nullable=True, unique=True),
        _uuid("created_by", _fk("profiles"), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False, server_default="50"),
        _timestamp("created_at"),
        sa.CheckConstraint("status IN ('scheduled', 'active', 'ended')", name="ck_meetings_status"),
    )
    op.create_index("idx_meetings_thread", "meetings", ["thread_id"])
    op.create_index("idx_meetings_room", "meetings", ["livekit_room_name"], unique=True)

    op.create_table(
        "tasks",
        _uuid("id", primary_key=True),
        _uuid("thread_id", _fk("threads"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _uuid("assigned_to", _fk("profiles", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.Text(), nullable=False, server_default="todo"),
        sa.Column("due_date", sa.Date(), nullable=True),
        _uuid("linked_message_id", _fk("messages", ondelete="SET NULL"), nullable=True),
        _uuid("linked_meeting_id", _fk("meetings", ondelete="SET NULL"), nullable=True),
        _uuid("created_by", _fk("profiles"), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint("status IN ('todo', 'in_progress', 'done')", name="ck_tasks_status"),
    )
    op.create_index("idx_tasks_thread", "tasks", ["thread_id"])

    # -----------------------------------------------------------------------
    # 4. Activity log
    # -----------------------------------------------------------------------

    op.create_table(
        "activity_logs",
        _uuid("id", primary_key=True),
        _uuid("user_id", _fk("profiles"), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("entity_type", sa.Text(), nullable=False),
        _uuid("entity_id", nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default="{}"),
        _timestamp("created_at"),
    )
    op.create_index("idx_activity_logs_user", "activity_logs", ["user_id", sa.text("created_at DESC")])

    # Rows may be deleted with their user, never rewritten.
    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_activity_log_update()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'Activity log entries are append-only.';
        END;
        $$ LANGUAGE plpgsql
    """)
    op.execute("""
        CREATE TRIGGER activity_logs_append_only
        BEFORE UPDATE ON activity_logs
        FOR EACH ROW EXECUTE FUNCTION prevent_activity_log_update()
    """)


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS activity_logs_append_only ON activity_logs")
    op.execute("DROP FUNCTION IF EXISTS prevent_activity_log_update()")

    op.drop_table("activity_logs")
    op.drop_table("tasks")
    op.drop_table("meetings")
    op.drop_table("messages")
    op.drop_table("thread_members")
    op.drop_table("threads")
    op.drop_table("profiles")
    op.drop_table("users")
