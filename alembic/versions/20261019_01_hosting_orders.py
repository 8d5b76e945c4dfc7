"""hosting orders table

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    if _table_exists(inspector, "orders"):
        return

    op.create_table(
        "orders",
        sa.Column("reff_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("package_id", sa.Integer(), nullable=False),
        sa.Column("package_name", sa.String(length=255), nullable=False),
        sa.Column("ram", sa.Integer(), nullable=False),
        sa.Column("disk", sa.Integer(), nullable=False),
        sa.Column("cpu", sa.Integer(), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("panel_username", sa.String(length=191), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("payment_method", sa.String(length=32), nullable=False, server_default="qris"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("qris_url", sa.Text(), nullable=True),
        sa.Column("qris_content", sa.Text(), nullable=True),
        sa.Column("atlantic_transaction_id", sa.String(length=128), nullable=True),
        sa.Column("panel_domain", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("panel_password", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("server_id", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    if _table_exists(inspector, "orders"):
        op.drop_table("orders")
