"""Create users, inventory, purchasing and work order tables.

Revision ID: 8e3f1a2b4c5d
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8e3f1a2b4c5d"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def _timestamps(*, updated: bool = True):
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if updated:
        cols.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return cols


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("clerk_id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            _enum("user_role_enum", "ADMIN", "WAREHOUSE_MANAGER", "PURCHASING_STAFF", "TECHNICIAN"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_clerk_id", "users", ["clerk_id"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("current_stock", sa.Integer(), nullable=False),
        sa.Column("minimum_stock", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("current_stock >= 0", name="ck_items_current_stock_non_negative"),
        sa.CheckConstraint("minimum_stock >= 0", name="ck_items_minimum_stock_non_negative"),
        sa.CheckConstraint("unit_price > 0", name="ck_items_unit_price_positive"),
    )
    op.create_index("ix_items_id", "items", ["id"])
    op.create_index("ix_items_sku", "items", ["sku"], unique=True)
    op.create_index("ix_items_stock_levels", "items", ["current_stock", "minimum_stock"])

    op.create_table(
        "stock_adjustments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "adjustment_type",
            _enum("stock_adjustment_type_enum", "ADDITION", "REMOVAL", "CORRECTION"),
            nullable=False,
        ),
        sa.Column("quantity_change", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("previous_stock", sa.Integer(), nullable=False),
        sa.Column("new_stock", sa.Integer(), nullable=False),
        sa.Column("adjusted_by", sa.String(length=128), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint("new_stock >= 0", name="ck_stock_adjustments_new_stock_non_negative"),
        sa.CheckConstraint(
            "new_stock = previous_stock + quantity_change",
            name="ck_stock_adjustments_balanced",
        ),
    )
    op.create_index("ix_stock_adjustments_id", "stock_adjustments", ["id"])
    op.create_index("ix_stock_adjustments_item_id", "stock_adjustments", ["item_id"])
    op.create_index("ix_stock_adjustments_adjustment_type", "stock_adjustments", ["adjustment_type"])
    op.create_index("ix_stock_adjustments_item_created", "stock_adjustments", ["item_id", "created_at"])
    op.create_index("ix_stock_adjustments_adjusted_by", "stock_adjustments", ["adjusted_by"])

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("contact_phone", sa.String(length=64), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("bank_account", sa.Text(), nullable=True),
        sa.Column("tax_id", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_suppliers_id", "suppliers", ["id"])
    op.create_index("ix_suppliers_name", "suppliers", ["name"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("po_number", sa.String(length=64), nullable=False),
        sa.Column(
            "supplier_id",
            sa.Integer(),
            sa.ForeignKey("suppliers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "status",
            _enum("purchase_order_status_enum", "DRAFT", "PENDING", "APPROVED", "REJECTED"),
            nullable=False,
        ),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=128), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_purchase_orders_id", "purchase_orders", ["id"])
    op.create_index("ix_purchase_orders_po_number", "purchase_orders", ["po_number"], unique=True)
    op.create_index("ix_purchase_orders_supplier_id", "purchase_orders", ["supplier_id"])
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"])
    op.create_index("ix_purchase_orders_status_created", "purchase_orders", ["status", "created_at"])

    op.create_table(
        "purchase_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "po_id",
            sa.Integer(),
            sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
    )
    op.create_index("ix_purchase_order_items_id", "purchase_order_items", ["id"])
    op.create_index("ix_purchase_order_items_po", "purchase_order_items", ["po_id"])
    op.create_index("ix_purchase_order_items_item_id", "purchase_order_items", ["item_id"])

    op.create_table(
        "work_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("work_order_number", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("assigned_technician", sa.String(length=128), nullable=False),
        sa.Column(
            "status",
            _enum("work_order_status_enum", "OPEN", "IN_PROGRESS", "COMPLETED"),
            nullable=False,
        ),
        sa.Column("created_by", sa.String(length=128), nullable=False),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_work_orders_id", "work_orders", ["id"])
    op.create_index("ix_work_orders_work_order_number", "work_orders", ["work_order_number"], unique=True)
    op.create_index("ix_work_orders_assigned_technician", "work_orders", ["assigned_technician"])
    op.create_index("ix_work_orders_status", "work_orders", ["status"])
    op.create_index("ix_work_orders_status_created", "work_orders", ["status", "created_at"])

    op.create_table(
        "work_order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "work_order_id",
            sa.Integer(),
            sa.ForeignKey("work_orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "item_id",
            sa.Integer(),
            sa.ForeignKey("items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("quantity_used", sa.Integer(), nullable=False),
        sa.CheckConstraint("quantity_used > 0", name="ck_work_order_items_quantity_positive"),
    )
    op.create_index("ix_work_order_items_id", "work_order_items", ["id"])
    op.create_index("ix_work_order_items_work_order", "work_order_items", ["work_order_id"])
    op.create_index("ix_work_order_items_item_id", "work_order_items", ["item_id"])


def downgrade() -> None:
    op.drop_table("work_order_items")
    op.drop_table("work_orders")
    op.drop_table("purchase_order_items")
    op.drop_table("purchase_orders")
    op.drop_table("suppliers")
    op.drop_table("stock_adjustments")
    op.drop_table("items")
    op.drop_table("users")
