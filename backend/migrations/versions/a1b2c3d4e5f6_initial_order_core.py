"""Initial schema: associations, catalog, sales orders and activity stream

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "associations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("order_ref_counter", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("association_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.ForeignKeyConstraint(["association_id"], ["associations.id"]),
        sa.UniqueConstraint("association_id", "name", name="uq_branches_association_name"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_branches_association_id", "branches", ["association_id"], unique=False)

    op.create_table(
        "branch_occurrences",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("branch_id", sa.Integer(), nullable=False),
        sa.Column("begin", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_branch_occurrences_branch_id", "branch_occurrences", ["branch_id"], unique=False)
    op.create_index("ix_branch_occurrences_branch_begin", "branch_occurrences", ["branch_id", "begin"], unique=False)

    op.create_table(
        "producers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "producer_branches",
        sa.Column("producer_id", sa.Integer(), nullable=False),
        sa.Column("branch_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["producer_id"], ["producers.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"]),
        sa.PrimaryKeyConstraint("producer_id", "branch_id"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("producer_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("ref", sa.String(length=64), nullable=False),
        sa.Column("is_bio", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("availability", sa.String(length=32), nullable=False, server_default="AVAILABLE"),
        sa.Column("stock", sa.Numeric(10, 3), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["producer_id"], ["producers.id"]),
        sa.UniqueConstraint("producer_id", "ref", name="uq_products_producer_ref"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_producer_id", "products", ["producer_id"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("firstname", sa.String(length=128), nullable=True),
        sa.Column("lastname", sa.String(length=128), nullable=True),
        sa.Column("address1", sa.String(length=255), nullable=True),
        sa.Column("address2", sa.String(length=255), nullable=True),
        sa.Column("zipcode", sa.String(length=16), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sqlite_autoincrement=True,
    )

    op.create_table(
        "sales_orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("association_id", sa.Integer(), nullable=False),
        sa.Column("branch_occurrence_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("ref", sa.String(length=64), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("firstname", sa.String(length=128), nullable=True),
        sa.Column("lastname", sa.String(length=128), nullable=True),
        sa.Column("address1", sa.String(length=255), nullable=True),
        sa.Column("address2", sa.String(length=255), nullable=True),
        sa.Column("zipcode", sa.String(length=16), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("consumer_comment", sa.Text(), nullable=True),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["association_id"], ["associations.id"]),
        sa.ForeignKeyConstraint(["branch_occurrence_id"], ["branch_occurrences.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("association_id", "ref", name="uq_sales_orders_association_ref"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sales_orders_association_id", "sales_orders", ["association_id"], unique=False)
    op.create_index("ix_sales_orders_user_id", "sales_orders", ["user_id"], unique=False)
    op.create_index("ix_sales_orders_occurrence", "sales_orders", ["branch_occurrence_id"], unique=False)

    op.create_table(
        "sales_order_rows",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sales_order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("producer_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("ref", sa.String(length=64), nullable=False),
        sa.Column("is_bio", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=False),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(["sales_order_id"], ["sales_orders.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["producer_id"], ["producers.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sales_order_rows_sales_order_id", "sales_order_rows", ["sales_order_id"], unique=False)
    op.create_index("ix_sales_order_rows_producer_id", "sales_order_rows", ["producer_id"], unique=False)

    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("trans_key", sa.String(length=128), nullable=False),
        sa.Column("params", sa.Text(), nullable=False),
        sa.Column("object_type", sa.String(length=32), nullable=False),
        sa.Column("object_id", sa.Integer(), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_activities_object", "activities", ["object_type", "object_id"], unique=False)
    op.create_index("ix_activities_target", "activities", ["target_type", "target_id"], unique=False)
    op.create_index("ix_activities_user_id", "activities", ["user_id"], unique=False)
    op.create_index("ix_activities_created_at", "activities", ["created_at"], unique=False)


def downgrade():
    op.drop_table("activities")
    op.drop_table("sales_order_rows")
    op.drop_table("sales_orders")
    op.drop_table("users")
    op.drop_table("products")
    op.drop_table("producer_branches")
    op.drop_table("producers")
    op.drop_table("branch_occurrences")
    op.drop_table("branches")
    op.drop_table("associations")
