"""initial registry schema

Revision ID: 0001_initial_registry
Revises:
Create Date: 2025-08-18 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial_registry"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "students",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("student_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("grad_year", sa.Integer(), nullable=False),
        sa.Column("major_status", sa.String(length=20), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_students")),
        sa.UniqueConstraint("student_id", name=op.f("uq_students_student_id")),
    )
    op.create_table(
        "course_sections",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("section_id", sa.String(length=64), nullable=False),
        sa.Column("section_number", sa.String(length=16), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("current_enrollment", sa.Integer(), nullable=False),
        sa.Column("credit_hours", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=1), nullable=False),
        sa.CheckConstraint(
            "capacity >= 0", name=op.f("ck_course_sections_capacity_non_negative")
        ),
        sa.CheckConstraint(
            "current_enrollment >= 0 AND current_enrollment <= capacity",
            name=op.f("ck_course_sections_enrollment_within_capacity"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_course_sections")),
        sa.UniqueConstraint("section_id", name=op.f("uq_course_sections_section_id")),
    )
    op.create_table(
        "lottery_runs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("current_year", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lottery_runs")),
    )
    op.create_table(
        "completed_courses",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("student_pk", ID_TYPE, nullable=False),
        sa.Column("course_code", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(
            ["student_pk"],
            ["students.id"],
            name=op.f("fk_completed_courses_student_pk_students"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_completed_courses")),
        sa.UniqueConstraint("student_pk", "course_code", name="uq_completed_course"),
    )
    op.create_index(
        op.f("ix_completed_courses_student_pk"),
        "completed_courses",
        ["student_pk"],
        unique=False,
    )
    op.create_table(
        "class_requests",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("student_pk", ID_TYPE, nullable=False),
        sa.Column("section_pk", ID_TYPE, nullable=False),
        sa.Column("preference_rank", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "preference_rank >= 1 AND preference_rank <= 4",
            name=op.f("ck_class_requests_rank_in_range"),
        ),
        sa.ForeignKeyConstraint(
            ["section_pk"],
            ["course_sections.id"],
            name=op.f("fk_class_requests_section_pk_course_sections"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_pk"],
            ["students.id"],
            name=op.f("fk_class_requests_student_pk_students"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_class_requests")),
        sa.UniqueConstraint("student_pk", "section_pk", name="uq_request_per_section"),
    )
    op.create_index(
        op.f("ix_class_requests_section_pk"), "class_requests", ["section_pk"], unique=False
    )
    op.create_index(
        op.f("ix_class_requests_student_pk"), "class_requests", ["student_pk"], unique=False
    )
    op.create_table(
        "lottery_outcomes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run_id", sa.Integer(), nullable=False),
        sa.Column("student_pk", ID_TYPE, nullable=False),
        sa.Column("section_pk", ID_TYPE, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("demographics", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["lottery_runs.id"],
            name=op.f("fk_lottery_outcomes_run_id_lottery_runs"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["section_pk"],
            ["course_sections.id"],
            name=op.f("fk_lottery_outcomes_section_pk_course_sections"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["student_pk"],
            ["students.id"],
            name=op.f("fk_lottery_outcomes_student_pk_students"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_lottery_outcomes")),
        sa.UniqueConstraint(
            "run_id", "student_pk", "section_pk", name="uq_outcome_per_request"
        ),
    )
    op.create_index(
        op.f("ix_lottery_outcomes_run_id"), "lottery_outcomes", ["run_id"], unique=False
    )
    op.create_index(
        op.f("ix_lottery_outcomes_section_pk"),
        "lottery_outcomes",
        ["section_pk"],
        unique=False,
    )
    op.create_index(
        op.f("ix_lottery_outcomes_student_pk"),
        "lottery_outcomes",
        ["student_pk"],
        unique=False,
    )
    op.create_index(
        "ix_lottery_outcomes_status", "lottery_outcomes", ["status"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_lottery_outcomes_status", table_name="lottery_outcomes")
    op.drop_index(op.f("ix_lottery_outcomes_student_pk"), table_name="lottery_outcomes")
    op.drop_index(op.f("ix_lottery_outcomes_section_pk"), table_name="lottery_outcomes")
    op.drop_index(op.f("ix_lottery_outcomes_run_id"), table_name="lottery_outcomes")
    op.drop_table("lottery_outcomes")
    op.drop_index(op.f("ix_class_requests_student_pk"), table_name="class_requests")
    op.drop_index(op.f("ix_class_requests_section_pk"), table_name="class_requests")
    op.drop_table("class_requests")
    op.drop_index(op.f("ix_completed_courses_student_pk"), table_name="completed_courses")
    op.drop_table("completed_courses")
    op.drop_table("lottery_runs")
    op.drop_table("course_sections")
    op.drop_table("students")
