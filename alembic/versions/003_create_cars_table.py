"""create cars table

Revision ID: 003
Revises: 002
Create Date: 2025-03-02 18:40:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "cars",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("model_year", sa.Integer(), nullable=False),
        sa.Column("daily_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("daily_price > 0", name="ck_cars_daily_price_positive"),
    )
    op.create_index("ix_cars_id", "cars", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_cars_id", table_name="cars")
    op.drop_table("cars")
