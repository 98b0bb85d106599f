"""initial schema: users, catalog, carts, orders, contact messages

Revision ID: 5b1e0c7a9d21
Revises:
Create Date: 2026-10-19 10:00:00.000000
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from dealership.db.types import GUID

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

category_type = sa.Enum("car", "car_part", name="categorytype")
item_type = sa.Enum("car", "car_part", name="itemtype")
fuel_type = sa.Enum("petrol", "diesel", "electric", "hybrid", name="fueltype")
transmission = sa.Enum("manual", "automatic", name="transmission")
order_status = sa.Enum(
    "pending", "confirmed", "processing", "shipped", "delivered", "cancelled", name="orderstatus"
)
payment_status = sa.Enum("pending", "paid", "failed", "refunded", name="paymentstatus")
payment_method = sa.Enum("credit_card", "debit_card", "bank_transfer", "cash", name="paymentmethod")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_superuser", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("phone_number", sa.String(40), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("country", sa.String(120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "brands",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("slug", sa.String(120), nullable=False, unique=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("logo_url", sa.String(512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "categories",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False, unique=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("category_type", category_type, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_categories_category_type", "categories", ["category_type"])

    op.create_table(
        "cars",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("brand_id", GUID(), sa.ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("category_id", GUID(), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("mileage", sa.Integer(), nullable=True),
        sa.Column("fuel_type", fuel_type, nullable=True),
        sa.Column("transmission", transmission, nullable=True),
        sa.Column("engine_capacity", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("features", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("price > 0", name="ck_cars_price_positive"),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_cars_stock_non_negative"),
        sa.CheckConstraint("year BETWEEN 1900 AND 2030", name="ck_cars_year_range"),
    )
    op.create_index("ix_cars_brand_id", "cars", ["brand_id"])
    op.create_index("ix_cars_category_id", "cars", ["category_id"])
    op.create_index("ix_cars_available_stock", "cars", ["is_available", "stock_quantity"])

    op.create_table(
        "car_parts",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("brand_id", GUID(), sa.ForeignKey("brands.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("category_id", GUID(), sa.ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("part_name", sa.String(100), nullable=False),
        sa.Column("part_number", sa.String(50), nullable=True, unique=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("compatibility", sa.String(500), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("stock_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("price > 0", name="ck_car_parts_price_positive"),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_car_parts_stock_non_negative"),
    )
    op.create_index("ix_car_parts_brand_id", "car_parts", ["brand_id"])
    op.create_index("ix_car_parts_category_id", "car_parts", ["category_id"])
    op.create_index("ix_car_parts_available_stock", "car_parts", ["is_available", "stock_quantity"])

    op.create_table(
        "carts",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("user_id", GUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "cart_items",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("cart_id", GUID(), sa.ForeignKey("carts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_type", item_type, nullable=False),
        sa.Column("item_id", GUID(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("cart_id", "item_type", "item_id", name="uq_cart_items_cart_item"),
        sa.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )
    op.create_index("ix_cart_items_item_id", "cart_items", ["item_id"])

    op.create_table(
        "orders",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False, unique=True),
        sa.Column("user_id", GUID(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", order_status, nullable=False, server_default="pending"),
        sa.Column("payment_status", payment_status, nullable=False, server_default="pending"),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("subtotal_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("shipping_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("shipping_address", sa.String(500), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_orders_user_id_order_date", "orders", ["user_id", "order_date"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "order_items",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("order_id", GUID(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_type", item_type, nullable=False),
        sa.Column("item_id", GUID(), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("part_number", sa.String(50), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
    )
    op.create_index("ix_order_items_item_id", "order_items", ["item_id"])

    op.create_table(
        "contact_messages",
        sa.Column("id", GUID(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_contact_messages_is_read", "contact_messages", ["is_read"])


def downgrade() -> None:
    op.drop_index("ix_contact_messages_is_read", table_name="contact_messages")
    op.drop_table("contact_messages")
    op.drop_index("ix_order_items_item_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_user_id_order_date", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_cart_items_item_id", table_name="cart_items")
    op.drop_table("cart_items")
    op.drop_table("carts")
    op.drop_index("ix_car_parts_available_stock", table_name="car_parts")
    op.drop_index("ix_car_parts_category_id", table_name="car_parts")
    op.drop_index("ix_car_parts_brand_id", table_name="car_parts")
    op.drop_table("car_parts")
    op.drop_index("ix_cars_available_stock", table_name="cars")
    op.drop_index("ix_cars_category_id", table_name="cars")
    op.drop_index("ix_cars_brand_id", table_name="cars")
    op.drop_table("cars")
    op.drop_index("ix_categories_category_type", table_name="categories")
    op.drop_table("categories")
    op.drop_table("brands")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (payment_method, payment_status, order_status, transmission, fuel_type, item_type, category_type):
        enum_type.drop(bind, checkfirst=True)
