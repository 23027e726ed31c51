from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_PLAYER_IDS = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "player",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index(
        "uq_player_name_lower",
        "player",
        [sa.text("lower(name)")],
        unique=True,
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("sequence_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("played_on", sa.Date(), nullable=False),
        sa.Column("team_a_player_ids", _PLAYER_IDS, nullable=False),
        sa.Column("team_a_score", sa.Integer(), nullable=False),
        sa.Column("team_b_player_ids", _PLAYER_IDS, nullable=False),
        sa.Column("team_b_score", sa.Integer(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_index(
        "ix_match_played_on_sequence", "match", ["played_on", "sequence_number"]
    )
    op.create_table(
        "pending_player",
        sa.Column("name_key", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False
        ),
    )
    op.create_table(
        "ledger_state",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade():
    op.drop_table("ledger_state")
    op.drop_table("pending_player")
    op.drop_index("ix_match_played_on_sequence", table_name="match")
    op.drop_table("match")
    op.drop_index("uq_player_name_lower", table_name="player")
    op.drop_table("player")
