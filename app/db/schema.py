from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, MetaData, Text
from sqlalchemy import Table, UniqueConstraint, false

metadata = MetaData()

GROUP_STATUSES = ("draft", "active", "ended")
MEMBER_STATUSES = ("joined", "left")

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("username", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=True),
)

groups = Table(
    "groups",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("status", Text, nullable=False, server_default="draft"),
    Column("creator_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("max_members", Integer, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=True),
    CheckConstraint("status in ('draft', 'active', 'ended')", name="ck_groups_status"),
)

group_rules = Table(
    "group_rules",
    metadata,
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True),
    Column("on_the_nose_points", Integer, nullable=False, server_default="3"),
    Column("correct_difference_points", Integer, nullable=False, server_default="2"),
    Column("outcome_points", Integer, nullable=False, server_default="1"),
    Column("nudge_enabled", Boolean, nullable=False, server_default=false()),
    Column("nudge_window_minutes", Integer, nullable=True),
)

group_members = Table(
    "group_members",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("status", Text, nullable=False, server_default="joined"),
    Column("joined_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    CheckConstraint("status in ('joined', 'left')", name="ck_group_members_status"),
)

# External, read-only for this service: written by the fixture sync pipeline.
fixtures = Table(
    "fixtures",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=True),
    Column("start_ts", BigInteger, nullable=False),
    Column("state", Text, nullable=False, server_default="NS"),
    Column("result", Text, nullable=True),
    Column("home_score", Integer, nullable=True),
    Column("away_score", Integer, nullable=True),
)

group_fixtures = Table(
    "group_fixtures",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("fixture_id", Integer, ForeignKey("fixtures.id"), nullable=False),
    UniqueConstraint("group_id", "fixture_id", name="uq_group_fixtures_group_fixture"),
)

group_predictions = Table(
    "group_predictions",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("group_fixture_id", Integer, ForeignKey("group_fixtures.id", ondelete="CASCADE"), nullable=False),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("prediction", Text, nullable=False),
    # Text-encoded integer written by settlement; parsed with a zero fallback.
    Column("points", Text, nullable=True),
    Column("winning_correct_score", Boolean, nullable=True),
    Column("winning_correct_difference", Boolean, nullable=True),
    Column("winning_match_winner", Boolean, nullable=True),
    Column("placed_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("settled_at", DateTime(timezone=True), nullable=True),
    UniqueConstraint("user_id", "group_fixture_id", name="uq_group_predictions_user_group_fixture"),
)

group_nudges = Table(
    "group_nudges",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("fixture_id", Integer, ForeignKey("fixtures.id"), nullable=False),
    Column("nudger_user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("target_user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint(
        "group_id",
        "fixture_id",
        "nudger_user_id",
        "target_user_id",
        name="uq_group_nudges_tuple",
    ),
)

user_activity_events = Table(
    "user_activity_events",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("group_id", Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False),
    Column("fixture_id", Integer, ForeignKey("fixtures.id"), nullable=True),
    Column("event_type", Text, nullable=False),
    Column("body", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("user_id", "group_id", "fixture_id", "event_type", name="uq_user_activity_events_dedup"),
)

Index("idx_group_members_group_status", group_members.c.group_id, group_members.c.status)
Index("idx_group_predictions_group_user", group_predictions.c.group_id, group_predictions.c.user_id)
Index("idx_group_nudges_group_nudger", group_nudges.c.group_id, group_nudges.c.nudger_user_id)
Index("idx_fixtures_state_start_ts", fixtures.c.state, fixtures.c.start_ts)
