from typing import List, Optional
import datetime as dt
from datetime import date
from pydantic import BaseModel, Field, field_validator, ConfigDict


def _clean_name(value: str, label: str = "name") -> str:
    if not isinstance(value, str):
        raise TypeError(f"{label} must be a string")
    trimmed = " ".join(value.split())
    if not trimmed:
        raise ValueError(f"{label} must not be empty")
    return trimmed


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    dateOfBirth: Optional[date] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _clean_name(value)

    @field_validator("dateOfBirth", mode="after")
    @classmethod
    def _validate_dob(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value > date.today():
            raise ValueError("dateOfBirth cannot be in the future")
        return value


class PlayerUpdate(PlayerCreate):
    pass


class PlayerOut(BaseModel):
    id: str
    name: str
    dateOfBirth: Optional[date] = None
    age: Optional[int] = None


class PlayerListOut(BaseModel):
    players: List[PlayerOut]
    total: int


class PendingPlayersOut(BaseModel):
    names: List[str]


class TeamIn(BaseModel):
    playerIds: List[str] = Field(..., min_length=2, max_length=2)
    score: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class MatchCreate(BaseModel):
    """Single match registration.

    ``sequenceNumber`` defaults to the next free number in the log.
    """

    date: dt.date
    sequenceNumber: Optional[int] = Field(default=None, ge=1)
    teamA: TeamIn
    teamB: TeamIn

    model_config = ConfigDict(extra="forbid")


class ImportRowIn(BaseModel):
    date: dt.date
    player1: str
    player2: str
    scoreA: int
    scoreB: int
    player3: str
    player4: str

    @field_validator("player1", "player2", "player3", "player4", mode="before")
    @classmethod
    def _validate_player(cls, value: str) -> str:
        return _clean_name(value, "player name")


class ImportIn(BaseModel):
    rows: List[ImportRowIn] = Field(..., min_length=1)


class RejectedRowOut(BaseModel):
    row: int
    detail: str


class ImportOut(BaseModel):
    imported: int
    matchIds: List[str]
    skippedRows: List[int]
    rejected: List[RejectedRowOut]
    pendingPlayers: List[str]
    possibleDuplicates: List[str]


class TeamOut(BaseModel):
    playerIds: List[str]
    playerNames: List[str]
    score: int


class MatchOut(BaseModel):
    id: str
    sequenceNumber: int
    date: dt.date
    teamA: TeamOut
    teamB: TeamOut


class MatchIdOut(BaseModel):
    id: str
    sequenceNumber: int


class NextSequenceOut(BaseModel):
    sequenceNumber: int


class LeaderboardEntryOut(BaseModel):
    rank: int
    playerId: str
    playerName: str
    gamesPlayed: int
    wins: int
    losses: int
    ties: int
    performanceScore: float
    winRate: float


class LeaderboardOut(BaseModel):
    policy: str
    leaders: List[LeaderboardEntryOut]
    total: int


# ---------------------------------------------------------------------------
# Balancing collaborator wire format
# ---------------------------------------------------------------------------


class BalancingPlayer(BaseModel):
    name: str
    performanceScore: float
    winRate: float


class TeamPair(BaseModel):
    player1: str
    player2: str

    model_config = ConfigDict(extra="forbid", strict=True)


class Matchup(BaseModel):
    teamA: TeamPair
    teamB: TeamPair

    model_config = ConfigDict(extra="forbid", strict=True)

    def names(self) -> list[str]:
        return [
            self.teamA.player1,
            self.teamA.player2,
            self.teamB.player1,
            self.teamB.player2,
        ]


class TeamSuggestion(BaseModel):
    matchups: List[Matchup]
    rationale: str

    model_config = ConfigDict(extra="forbid", strict=True)


class BalancingIn(BaseModel):
    attendance: List[str] = Field(..., min_length=1)


class RankingAdviceOut(BaseModel):
    advice: str


class LedgerOut(BaseModel):
    version: int
    players: List[dict]
    matches: List[dict]
