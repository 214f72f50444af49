"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

AUTH_TYPES = ("username_password", "sso", "api_key", "oauth", "other")
REQUEST_STATUSES = ("pending", "approved", "rejected")


def upgrade() -> None:
    auth_type = sa.Enum(*AUTH_TYPES, name="auth_type")
    request_status = sa.Enum(*REQUEST_STATUSES, name="request_status")
    # Created with the applications table; reused by application_requests.
    existing_auth_type = postgresql.ENUM(
        *AUTH_TYPES, name="auth_type", create_type=False
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(200), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "departments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("auth_type", auth_type, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_applications_name", "applications", ["name"])

    op.create_table(
        "application_departments",
        sa.Column(
            "application_id",
            sa.Uuid(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "department_id",
            sa.Uuid(),
            sa.ForeignKey("departments.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "application_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("auth_type", existing_auth_type, nullable=False),
        sa.Column(
            "status", request_status, nullable=False, server_default="pending"
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column(
            "requested_by",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_application_requests_requested_by",
        "application_requests",
        ["requested_by"],
    )
    op.create_index(
        "ix_application_requests_status", "application_requests", ["status"]
    )

    op.create_table(
        "application_request_departments",
        sa.Column(
            "request_id",
            sa.Uuid(),
            sa.ForeignKey("application_requests.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "department_id",
            sa.Uuid(),
            sa.ForeignKey("departments.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )

    op.create_table(
        "user_favorites",
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "application_id",
            sa.Uuid(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "user_application_lists",
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "application_id",
            sa.Uuid(),
            sa.ForeignKey("applications.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_user_application_lists_user_order",
        "user_application_lists",
        ["user_id", "order_index"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_user_application_lists_user_order", table_name="user_application_lists"
    )
    op.drop_table("user_application_lists")
    op.drop_table("user_favorites")
    op.drop_table("application_request_departments")
    op.drop_index("ix_application_requests_status", table_name="application_requests")
    op.drop_index(
        "ix_application_requests_requested_by", table_name="application_requests"
    )
    op.drop_table("application_requests")
    op.drop_table("application_departments")
    op.drop_index("ix_applications_name", table_name="applications")
    op.drop_table("applications")
    op.drop_table("departments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="request_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="auth_type").drop(op.get_bind(), checkfirst=True)
