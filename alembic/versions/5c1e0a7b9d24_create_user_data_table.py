"""Create user_data table

Revision ID: 5c1e0a7b9d24
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c1e0a7b9d24"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_data",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("discord_id", sa.String(32), nullable=False),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("beta_tester", sa.Boolean(), nullable=True),
        sa.Column("metabits", sa.Float(), nullable=True),
        sa.Column("dino_rank", sa.Integer(), nullable=True),
        sa.Column("prestige_rank", sa.Integer(), nullable=True),
        sa.Column("singularity_speedrun_time", sa.Float(), nullable=True),
        sa.Column("all_sharks_obtained", sa.Boolean(), nullable=True),
        sa.Column("all_hidden_achievements_obtained", sa.Boolean(), nullable=True),
        sa.Column("edited_timestamp", sa.BigInteger(), nullable=True),
    )
    # Updates filter on token alone
    op.create_index("ix_user_data_token", "user_data", ["token"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_user_data_token", table_name="user_data")
    op.drop_table("user_data")
