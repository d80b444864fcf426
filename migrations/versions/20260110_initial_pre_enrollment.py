"""initial pre-enrollment schema: courses, sessions, plans, enrollments, selections

Revision ID: 20260110_initial
Revises:
Create Date: 2026-01-10
"""
from alembic import op
import sqlalchemy as sa

revision = "20260110_initial"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLE = sa.Enum("ADMIN", "STUDENT", name="userrole")
MODALITY = sa.Enum("REDACAO", "EXATAS", "MATEMATICA", "GRAMATICA", name="coursemodality")
ENROLLMENT_STATUS = sa.Enum(
    "DRAFT", "SUBMITTED", "UNDER_REVIEW", "WAITING_PAYMENT", "CONFIRMED", "WAITLISTED", "REJECTED",
    name="enrollmentstatus",
)
PAYMENT_METHOD = sa.Enum("PIX", "CARD", "BOLETO", "PRESENTIAL", name="paymentmethod")
PAYMENT_STATUS = sa.Enum("PENDING", "CONFIRMED", name="paymentstatus")
OBJECTIVE = sa.Enum("ENEM", "UFG_VESTIBULAR", "REFORCO", "CONCURSOS", name="objective")
LEVEL = sa.Enum("INICIANTE", "INTERMEDIARIO", "AVANCADO", name="level")
SELECTION_STATUS = sa.Enum("RESERVED", "WAITLIST", name="selectionstatus")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(160), nullable=False),
        sa.Column("email", sa.String(160), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", USER_ROLE, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.String(40), nullable=False),
        sa.Column("title", sa.String(160), nullable=False),
        sa.Column("modality", MODALITY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("materials", sa.Text(), nullable=True),
        sa.Column("audience", sa.String(160), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("bonus_limit", sa.Integer(), nullable=True),
        sa.Column("bonus_awarded", sa.Integer(), nullable=False),
        sa.CheckConstraint("bonus_awarded >= 0", name="ck_courses_bonus_awarded_non_negative"),
        sa.CheckConstraint(
            "bonus_limit IS NULL OR bonus_awarded <= bonus_limit", name="ck_courses_bonus_within_limit"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_courses"),
    )

    op.create_table(
        "course_sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.String(40), nullable=False),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("weekday", sa.String(40), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("level", sa.String(60), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.CheckConstraint("capacity >= 0", name="ck_course_sessions_capacity_non_negative"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], name="fk_course_sessions_course_id_courses"),
        sa.PrimaryKeyConstraint("id", name="pk_course_sessions"),
        sa.UniqueConstraint("code", name="uq_course_sessions_code"),
    )
    op.create_index("ix_course_sessions_course_id", "course_sessions", ["course_id"])

    op.create_table(
        "payment_plans",
        sa.Column("id", sa.String(80), nullable=False),
        sa.Column("course_id", sa.String(40), nullable=False),
        sa.Column("label", sa.String(80), nullable=False),
        sa.Column("months", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_pct", sa.Numeric(5, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], name="fk_payment_plans_course_id_courses"),
        sa.PrimaryKeyConstraint("id", name="pk_payment_plans"),
    )
    op.create_index("ix_payment_plans_course_id", "payment_plans", ["course_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("status", ENROLLMENT_STATUS, nullable=False),
        sa.Column("payment_method", PAYMENT_METHOD, nullable=True),
        sa.Column("payment_status", PAYMENT_STATUS, nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("registration_fee", sa.Numeric(10, 2), nullable=False),
        sa.Column("registration_fee_discount", sa.Boolean(), nullable=False),
        sa.Column("has_waitlist", sa.Boolean(), nullable=False),
        sa.Column("promo_bonus_granted", sa.Boolean(), nullable=False),
        sa.Column("token", sa.String(12), nullable=True),
        sa.Column("token_sequence", sa.Integer(), nullable=True),
        sa.Column("confirmation_day", sa.Date(), nullable=True),
        sa.Column("confirmation_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("school", sa.String(160), nullable=True),
        sa.Column("grade", sa.String(60), nullable=True),
        sa.Column("objective", OBJECTIVE, nullable=True),
        sa.Column("level", LEVEL, nullable=True),
        sa.Column("has_enem", sa.Boolean(), nullable=True),
        sa.Column("enem_score", sa.Integer(), nullable=True),
        sa.Column("study_goal", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_enrollments_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_enrollments"),
        sa.UniqueConstraint("token", name="uq_enrollments_token"),
    )
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])

    op.create_table(
        "selections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("enrollment_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.String(40), nullable=False),
        sa.Column("session_id", sa.Integer(), nullable=False),
        sa.Column("plan_id", sa.String(80), nullable=True),
        sa.Column("status", SELECTION_STATUS, nullable=False),
        sa.Column("waitlist_position", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("queued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(status = 'RESERVED' AND waitlist_position IS NULL)"
            " OR (status = 'WAITLIST' AND waitlist_position >= 1)",
            name="ck_selections_placement_consistent",
        ),
        sa.ForeignKeyConstraint(
            ["enrollment_id"], ["enrollments.id"], name="fk_selections_enrollment_id_enrollments", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], name="fk_selections_course_id_courses"),
        sa.ForeignKeyConstraint(["session_id"], ["course_sessions.id"], name="fk_selections_session_id_course_sessions"),
        sa.ForeignKeyConstraint(["plan_id"], ["payment_plans.id"], name="fk_selections_plan_id_payment_plans"),
        sa.PrimaryKeyConstraint("id", name="pk_selections"),
        sa.UniqueConstraint("enrollment_id", "course_id", name="uq_selection_enrollment_course"),
    )
    op.create_index("ix_selections_session_queued", "selections", ["session_id", "queued_at"])

    op.create_table(
        "token_counters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_token_counters"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("entity", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(40), nullable=False),
        sa.Column("diff_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_audit_logs_user_id_users"),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )


def downgrade():
    op.drop_table("audit_logs")
    op.drop_table("token_counters")
    op.drop_index("ix_selections_session_queued", table_name="selections")
    op.drop_table("selections")
    op.drop_index("ix_enrollments_user_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_payment_plans_course_id", table_name="payment_plans")
    op.drop_table("payment_plans")
    op.drop_index("ix_course_sessions_course_id", table_name="course_sessions")
    op.drop_table("course_sessions")
    op.drop_table("courses")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (SELECTION_STATUS, LEVEL, OBJECTIVE, PAYMENT_STATUS, PAYMENT_METHOD,
                 ENROLLMENT_STATUS, MODALITY, USER_ROLE):
        enum.drop(bind, checkfirst=True)
