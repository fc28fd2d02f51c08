"""initial_runboard_schema

Creates the reporting schema:
  - users                    — contributors and coordinators (no credentials)
  - submissions              — reported test runs, derived status
  - submission_sections      — ordered sections of a run
  - submission_subsections   — ordered subsections of a section

Tables created conditionally (IF NOT EXISTS semantics) so the migration can
run against a development database that already received them via
db.create_all().

Revision ID: 0001a1b2c3d4
Revises:
Create Date: 2026-10-18 09:12:40.118204
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '0001a1b2c3d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Users ─────────────────────────────────────────────────────────────
    if "users" not in existing:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False,
                      comment="contributor | coordinator"),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=False),
            sa.Column("team", sa.String(length=100), nullable=True,
                      comment="Required for contributors"),
            sa.Column("manager_id", sa.Integer(), nullable=True,
                      comment="Coordinator of a contributor"),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint(
                "role IN ('contributor', 'coordinator')", name="ck_users_role",
            ),
            sa.CheckConstraint(
                "(role = 'contributor' AND team IS NOT NULL AND manager_id IS NOT NULL) "
                "OR (role = 'coordinator' AND team IS NULL AND manager_id IS NULL)",
                name="ck_users_role_fields",
            ),
            sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="RESTRICT"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("email"),
        )
        op.create_index("ix_users_role", "users", ["role"])
        op.create_index("ix_users_manager_id", "users", ["manager_id"])

    # ── Submissions ───────────────────────────────────────────────────────
    if "submissions" not in existing:
        op.create_table(
            "submissions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("team", sa.String(length=100), nullable=False,
                      comment="Team label frozen at creation"),
            sa.Column("lead_id", sa.Integer(), nullable=False),
            sa.Column("manager_id", sa.Integer(), nullable=False,
                      comment="Snapshot of the lead's coordinator at creation time"),
            sa.Column("test_name", sa.String(length=200), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False,
                      comment="passed | skipped | failed | errored — derived, never client-supplied"),
            sa.Column("timestamp", sa.DateTime(), nullable=False,
                      comment="When the run happened (server-local wall clock)"),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["lead_id"], ["users.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_submissions_lead_timestamp", "submissions", ["lead_id", "timestamp"])
        op.create_index("ix_submissions_manager_timestamp", "submissions", ["manager_id", "timestamp"])
        op.create_index("ix_submissions_team_timestamp", "submissions", ["team", "timestamp"])
        op.create_index(
            "ix_submissions_manager_team_timestamp", "submissions",
            ["manager_id", "team", "timestamp"],
        )

    # ── Sections ──────────────────────────────────────────────────────────
    if "submission_sections" not in existing:
        op.create_table(
            "submission_sections",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("submission_id", sa.Integer(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("result", sa.String(length=20), nullable=False,
                      comment="passed | skipped | failed | errored"),
            sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_submission_sections_submission_id", "submission_sections", ["submission_id"],
        )

    # ── Subsections ───────────────────────────────────────────────────────
    if "submission_subsections" not in existing:
        op.create_table(
            "submission_subsections",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("section_id", sa.Integer(), nullable=False),
            sa.Column("position", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("result", sa.String(length=20), nullable=False,
                      comment="passed | skipped | failed | errored"),
            sa.ForeignKeyConstraint(["section_id"], ["submission_sections.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_submission_subsections_section_id", "submission_subsections", ["section_id"],
        )


def downgrade():
    op.drop_table("submission_subsections")
    op.drop_table("submission_sections")
    op.drop_table("submissions")
    op.drop_table("users")
