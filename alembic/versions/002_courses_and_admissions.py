"""002 - Courses and admissions

Revision ID: 002_courses_admissions
Revises: 001_initial
Create Date: 2026-10-05
"""
from alembic import op
import sqlalchemy as sa


revision = "002_courses_admissions"
down_revision = "001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "courses",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("duration", sa.String(50), nullable=False),
        sa.Column("fees", sa.Integer(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="Other"),
        sa.Column("eligibility", sa.String(200), nullable=False, server_default="Open for all"),
        sa.Column("status", sa.String(20), nullable=False, server_default="Active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("fees >= 0", name="ck_courses_fees_non_negative"),
    )
    op.create_index("ix_courses_name", "courses", ["name"])
    op.create_index("ix_courses_status", "courses", ["status"])

    op.create_table(
        "admissions",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("student_id", sa.String(30), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("father_husband_name", sa.String(200), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(10), nullable=False),
        sa.Column("mobile", sa.String(10), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("batch_timing", sa.String(30), nullable=False),
        sa.Column("course_id", sa.BigInteger(), nullable=True),
        sa.Column("fees_snapshot", sa.Integer(), nullable=True),
        sa.Column("discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_plan", sa.String(20), nullable=False, server_default="Full"),
        sa.Column("total_installments", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint("discount >= 0", name="ck_admissions_discount_non_negative"),
        sa.CheckConstraint("fees_snapshot >= 0", name="ck_admissions_fees_snapshot_non_negative"),
    )
    op.create_index("ix_admissions_student_id", "admissions", ["student_id"], unique=True)
    op.create_index("ix_admissions_name", "admissions", ["name"])
    op.create_index("ix_admissions_email", "admissions", ["email"])
    op.create_index("ix_admissions_course_id", "admissions", ["course_id"])
    op.create_index("ix_admissions_payment_status", "admissions", ["payment_status"])
    op.create_index("ix_admissions_user_id", "admissions", ["user_id"])


def downgrade() -> None:
    op.drop_table("admissions")
    op.drop_table("courses")
