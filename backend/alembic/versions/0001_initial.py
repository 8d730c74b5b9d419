"""Initial schema: centers, sessions, activity journal, center data.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-17

Run with:
    alembic upgrade head
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Centers ──────────────────────────────────────────────

    op.create_table(
        "centers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("manager_name", sa.String(255)),
        sa.Column("address", sa.Text()),
        sa.Column("phone", sa.String(50)),
        sa.Column("custom_permissions", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_centers_email", "centers", ["email"], unique=True)

    # ── Sessions ─────────────────────────────────────────────

    op.create_table(
        "center_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("center_name", sa.String(255), nullable=False),
        sa.Column("session_start", sa.DateTime(), nullable=False),
        sa.Column("session_end", sa.DateTime()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("opened_by", sa.String(255)),
        sa.Column("closed_by", sa.String(255)),
        sa.Column("end_reason", sa.String(20)),
    )
    # At most one open session per center
    op.create_index(
        "uq_center_sessions_one_active",
        "center_sessions",
        ["center_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )
    op.create_index(
        "ix_center_sessions_center_start",
        "center_sessions",
        ["center_id", "session_start"],
    )

    # ── Activity journal (center partition + global mirror) ──

    op.create_table(
        "center_activities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("actor_id", sa.String(255), nullable=False),
        sa.Column("actor_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("action", sa.String(500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("target_id", sa.String(36)),
        sa.Column("target_name", sa.String(255)),
        sa.Column("details", sa.JSON()),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_center_activities_category", "center_activities", ["category"])
    op.create_index(
        "ix_center_activities_center_ts", "center_activities", ["center_id", "timestamp"]
    )

    op.create_table(
        "global_activities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), nullable=False),
        sa.Column("center_name", sa.String(255)),
        sa.Column("actor_id", sa.String(255), nullable=False),
        sa.Column("actor_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("action", sa.String(500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("target_id", sa.String(36)),
        sa.Column("target_name", sa.String(255)),
        sa.Column("details", sa.JSON()),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_global_activities_center_id", "global_activities", ["center_id"])
    op.create_index("ix_global_activities_category", "global_activities", ["category"])
    op.create_index("ix_global_activities_timestamp", "global_activities", ["timestamp"])

    # ── Center data ──────────────────────────────────────────

    op.create_table(
        "technicians",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_technicians_center_id", "technicians", ["center_id"])

    op.create_table(
        "customers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("customer_type", sa.String(20), nullable=False, server_default="consumer"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_customers_center_id", "customers", ["center_id"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("note", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_inventory_items_center_id", "inventory_items", ["center_id"])

    op.create_table(
        "sales",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("center_name", sa.String(255)),
        sa.Column("item_id", sa.String(36), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("customer_phone", sa.String(50), nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("created_by", sa.String(255)),
        sa.Column("date", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_sales_center_id", "sales", ["center_id"])
    op.create_index("ix_sales_date", "sales", ["date"])

    op.create_table(
        "maintenance_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("center_id", sa.String(36), sa.ForeignKey("centers.id"), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50)),
        sa.Column("customer_id", sa.String(36)),
        sa.Column("device_type", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("technician_id", sa.String(36)),
        sa.Column("technician_name", sa.String(255)),
        sa.Column("is_warranty", sa.Boolean(), server_default=sa.false()),
        sa.Column("parts", sa.JSON(), server_default="[]"),
        sa.Column("total_cost", sa.Float(), server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("lifecycle", sa.JSON(), server_default="[]"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("completed_at", sa.DateTime()),
    )
    op.create_index("ix_maintenance_requests_center_id", "maintenance_requests", ["center_id"])
    op.create_index("ix_maintenance_requests_status", "maintenance_requests", ["status"])
    op.create_index("ix_maintenance_requests_customer_id", "maintenance_requests", ["customer_id"])
    op.create_index(
        "ix_maintenance_requests_technician_id", "maintenance_requests", ["technician_id"]
    )


def downgrade() -> None:
    for table in (
        "maintenance_requests",
        "sales",
        "inventory_items",
        "customers",
        "technicians",
        "global_activities",
        "center_activities",
        "center_sessions",
        "centers",
    ):
        op.drop_table(table)
