from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="draft"),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("max_members", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status in ('draft', 'active', 'ended')", name="ck_groups_status"),
    )

    op.create_table(
        "group_rules",
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("on_the_nose_points", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("correct_difference_points", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("outcome_points", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("nudge_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("nudge_window_minutes", sa.Integer(), nullable=True),
    )

    op.create_table(
        "group_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="joined"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
        sa.CheckConstraint("status in ('joined', 'left')", name="ck_group_members_status"),
    )
    op.create_index("idx_group_members_group_status", "group_members", ["group_id", "status"])

    op.create_table(
        "fixtures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("start_ts", sa.BigInteger(), nullable=False),
        sa.Column("state", sa.Text(), nullable=False, server_default="NS"),
        sa.Column("result", sa.Text(), nullable=True),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
    )
    op.create_index("idx_fixtures_state_start_ts", "fixtures", ["state", "start_ts"])

    op.create_table(
        "group_fixtures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("fixture_id", sa.Integer(), sa.ForeignKey("fixtures.id"), nullable=False),
        sa.UniqueConstraint("group_id", "fixture_id", name="uq_group_fixtures_group_fixture"),
    )

    op.create_table(
        "group_predictions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "group_fixture_id",
            sa.Integer(),
            sa.ForeignKey("group_fixtures.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("prediction", sa.Text(), nullable=False),
        sa.Column("points", sa.Text(), nullable=True),
        sa.Column("winning_correct_score", sa.Boolean(), nullable=True),
        sa.Column("winning_correct_difference", sa.Boolean(), nullable=True),
        sa.Column("winning_match_winner", sa.Boolean(), nullable=True),
        sa.Column("placed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "group_fixture_id", name="uq_group_predictions_user_group_fixture"),
    )
    op.create_index("idx_group_predictions_group_user", "group_predictions", ["group_id", "user_id"])

    op.create_table(
        "group_nudges",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("fixture_id", sa.Integer(), sa.ForeignKey("fixtures.id"), nullable=False),
        sa.Column("nudger_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("target_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "group_id",
            "fixture_id",
            "nudger_user_id",
            "target_user_id",
            name="uq_group_nudges_tuple",
        ),
    )
    op.create_index("idx_group_nudges_group_nudger", "group_nudges", ["group_id", "nudger_user_id"])

    op.create_table(
        "user_activity_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("fixture_id", sa.Integer(), sa.ForeignKey("fixtures.id"), nullable=True),
        sa.Column("event_type", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "user_id",
            "group_id",
            "fixture_id",
            "event_type",
            name="uq_user_activity_events_dedup",
        ),
    )


def downgrade() -> None:
    op.drop_table("user_activity_events")
    op.drop_index("idx_group_nudges_group_nudger", table_name="group_nudges")
    op.drop_table("group_nudges")
    op.drop_index("idx_group_predictions_group_user", table_name="group_predictions")
    op.drop_table("group_predictions")
    op.drop_table("group_fixtures")
    op.drop_index("idx_fixtures_state_start_ts", table_name="fixtures")
    op.drop_table("fixtures")
    op.drop_index("idx_group_members_group_status", table_name="group_members")
    op.drop_table("group_members")
    op.drop_table("group_rules")
    op.drop_table("groups")
    op.drop_table("users")
