"""Core value types for the match log and roster.

These are plain frozen values handed to the ingestion and ranking services.
Persistence and the HTTP layer convert to and from them at the edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Union

from .exceptions import MergeInvariantViolation


@dataclass(frozen=True)
class Unassigned:
    """Sequence number not yet allocated by ingestion."""

    def __repr__(self) -> str:
        return "UNASSIGNED"


UNASSIGNED = Unassigned()


@dataclass(frozen=True, order=True)
class Assigned:
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("sequence number must be an integer")
        if self.value <= 0:
            raise ValueError("assigned sequence numbers start at 1")


SequenceNumber = Union[Unassigned, Assigned]


def sequence_from_int(value: int) -> SequenceNumber:
    """Map the stored integer form; ``0`` is the import sentinel."""

    if value == 0:
        return UNASSIGNED
    return Assigned(value)


def sequence_to_int(sequence: SequenceNumber) -> int:
    if isinstance(sequence, Assigned):
        return sequence.value
    raise MergeInvariantViolation("match has no sequence number assigned")


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    date_of_birth: date | None = None

    def age_on(self, today: date) -> int | None:
        """Return the age in whole years on ``today``."""

        dob = self.date_of_birth
        if dob is None:
            return None
        age = today.year - dob.year
        if (today.month, today.day) < (dob.month, dob.day):
            age -= 1
        return age


@dataclass(frozen=True)
class TeamResult:
    players: tuple[str, ...]
    score: int


@dataclass(frozen=True)
class Match:
    id: str
    sequence: SequenceNumber
    date: date
    team_a: TeamResult
    team_b: TeamResult

    @property
    def player_ids(self) -> tuple[str, ...]:
        return self.team_a.players + self.team_b.players

    def involves(self, player_id: str) -> bool:
        return player_id in self.team_a.players or player_id in self.team_b.players

    @property
    def is_tie(self) -> bool:
        return self.team_a.score == self.team_b.score

    @property
    def winner(self) -> str | None:
        """``"A"``, ``"B"`` or ``None`` for a tied score."""

        if self.team_a.score > self.team_b.score:
            return "A"
        if self.team_b.score > self.team_a.score:
            return "B"
        return None

    def order_key(self) -> tuple[date, int]:
        return (self.date, sequence_to_int(self.sequence))


@dataclass(frozen=True)
class Snapshot:
    """A versioned, immutable view of roster and match log."""

    players: tuple[Player, ...] = ()
    matches: tuple[Match, ...] = ()
    version: int = 0

    def player_ids(self) -> set[str]:
        return {p.id for p in self.players}

    def players_by_id(self) -> dict[str, Player]:
        return {p.id: p for p in self.players}


@dataclass(frozen=True)
class IndividualRanking:
    player_id: str
    name: str
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    performance_score: float = 0.0
    win_rate: float = 0.0

    @property
    def ties(self) -> int:
        return self.games_played - self.wins - self.losses


# ---------------------------------------------------------------------------
# Plain-record codec for the persisted ``{"players": [...], "matches": [...]}``
# ---------------------------------------------------------------------------


def _parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        # Stored dates may carry a time component ("2024-01-05T00:00:00.000Z").
        return date.fromisoformat(value[:10])
    raise ValueError(f"{field_name} must be an ISO date")


def player_to_record(player: Player) -> dict[str, Any]:
    return {
        "id": player.id,
        "name": player.name,
        "dateOfBirth": player.date_of_birth.isoformat() if player.date_of_birth else None,
    }


def player_from_record(record: Mapping[str, Any]) -> Player:
    dob = record.get("dateOfBirth") or record.get("dob")
    return Player(
        id=str(record["id"]),
        name=str(record["name"]),
        date_of_birth=_parse_date(dob, "dateOfBirth") if dob else None,
    )


def _team_to_record(team: TeamResult) -> dict[str, Any]:
    return {"players": list(team.players), "score": team.score}


def _team_from_record(record: Mapping[str, Any], side: str) -> TeamResult:
    from .services.validation import validate_score_value

    # Fractional or non-numeric scores are refused, never truncated.
    return TeamResult(
        players=tuple(str(pid) for pid in record.get("players", ())),
        score=validate_score_value(
            record.get("score", 0), f"Team {side} score", max_value=None
        ),
    )


def match_to_record(match: Match) -> dict[str, Any]:
    return {
        "id": match.id,
        "sequenceNumber": sequence_to_int(match.sequence),
        "date": match.date.isoformat(),
        "teamA": _team_to_record(match.team_a),
        "teamB": _team_to_record(match.team_b),
    }


def match_from_record(record: Mapping[str, Any]) -> Match:
    # ``dayId`` is the field name used by older saved states.
    raw_seq = record.get("sequenceNumber") or record.get("dayId") or 0
    return Match(
        id=str(record["id"]),
        sequence=sequence_from_int(int(raw_seq)),
        date=_parse_date(record.get("date"), "date"),
        team_a=_team_from_record(record["teamA"], "A"),
        team_b=_team_from_record(record["teamB"], "B"),
    )


def snapshot_to_records(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    return {
        "players": [player_to_record(p) for p in snapshot.players],
        "matches": [match_to_record(m) for m in snapshot.matches],
    }


def snapshot_from_records(
    records: Mapping[str, Iterable[Mapping[str, Any]]], *, version: int = 0
) -> Snapshot:
    return Snapshot(
        players=tuple(player_from_record(r) for r in records.get("players", ())),
        matches=tuple(match_from_record(r) for r in records.get("matches", ())),
        version=version,
    )
