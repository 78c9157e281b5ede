"""create rentals table

Revision ID: 004
Revises: 003
Create Date: 2025-03-03 09:15:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rentals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("car_id", sa.Integer(), nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("rent_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("return_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["car_id"], ["cars.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["users.id"]),
    )
    op.create_index("ix_rentals_id", "rentals", ["id"], unique=False)
    op.create_index("ix_rentals_car_id", "rentals", ["car_id"], unique=False)
    op.create_index("ix_rentals_customer_id", "rentals", ["customer_id"], unique=False)
    # Partial unique index: a car can have only one rental without a return date.
    # Both SQLite and PostgreSQL support the WHERE clause.
    op.create_index(
        "uq_rentals_open_car",
        "rentals",
        ["car_id"],
        unique=True,
        sqlite_where=sa.text("return_date IS NULL"),
        postgresql_where=sa.text("return_date IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_rentals_open_car", table_name="rentals")
    op.drop_index("ix_rentals_customer_id", table_name="rentals")
    op.drop_index("ix_rentals_car_id", table_name="rentals")
    op.drop_index("ix_rentals_id", table_name="rentals")
    op.drop_table("rentals")
