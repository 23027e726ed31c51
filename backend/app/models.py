from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    JSON,
    Integer,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from .db import Base


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("uq_player_name_lower", func.lower(name), unique=True),
    )


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    sequence_number = Column(Integer, nullable=False, unique=True)
    played_on = Column(Date, nullable=False)
    team_a_player_ids = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    team_a_score = Column(Integer, nullable=False)
    team_b_player_ids = Column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False
    )
    team_b_score = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_match_played_on_sequence", played_on, sequence_number),
    )


class PendingPlayer(Base):
    """A name met during an import that is not on the roster yet."""

    __tablename__ = "pending_player"
    name_key = Column(String, primary_key=True)  # casefolded name
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class LedgerState(Base):
    """Single row holding the snapshot version of roster + match log."""

    __tablename__ = "ledger_state"
    id = Column(Integer, primary_key=True)
    version = Column(Integer, nullable=False, default=0)
