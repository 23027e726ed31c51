from typing import Any, Collection, Optional, Sequence

from ..domain import Match, TeamResult

TEAM_SIZE = 2


class ValidationError(Exception):
    """Raised when a submitted match record is malformed."""

    def __init__(self, detail: str, *, index: Optional[int] = None) -> None:
        if index is not None:
            detail = f"Match #{index}: {detail}"
        super().__init__(detail)
        self.detail = detail
        self.index = index


def validate_score_value(
    raw: Any,
    label: str,
    *,
    min_value: int = 0,
    max_value: Optional[int] = 99,
) -> int:
    """Coerce ``raw`` to an integer score within bounds.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """

    if isinstance(raw, bool):
        raise ValidationError(f"{label} must be an integer (not a boolean).")
    if isinstance(raw, float) and not raw.is_integer():
        raise ValidationError(f"{label} must be an integer.")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer.")

    if value < min_value:
        raise ValidationError(
            f"{label} must be greater than or equal to {min_value}."
        )
    if max_value is not None and value > max_value:
        raise ValidationError(f"{label} must be less than or equal to {max_value}.")
    return value


def _validate_team(team: TeamResult, side: str, max_score: Optional[int]) -> None:
    players = team.players
    if len(players) != TEAM_SIZE:
        raise ValidationError(
            f"Team {side} requires exactly {TEAM_SIZE} players (got {len(players)})."
        )
    if any(not pid for pid in players):
        raise ValidationError(f"Team {side} has an empty player id.")
    if len(set(players)) != len(players):
        raise ValidationError(f"Team {side} lists the same player twice.")
    validate_score_value(team.score, f"Team {side} score", max_value=max_score)


def validate_match(
    match: Match,
    roster_ids: Optional[Collection[str]] = None,
    *,
    max_score: Optional[int] = 99,
) -> None:
    """Validate one doubles match record.

    Rules:
    - Each team has exactly two distinct, non-empty player ids
    - No player appears on both teams
    - Scores are integers in ``[0, max_score]``
    - When ``roster_ids`` is given, every player id must be in it
    """

    _validate_team(match.team_a, "A", max_score)
    _validate_team(match.team_b, "B", max_score)

    overlap = set(match.team_a.players) & set(match.team_b.players)
    if overlap:
        names = ", ".join(sorted(overlap))
        raise ValidationError(f"Player(s) {names} cannot play on both teams.")

    if roster_ids is not None:
        unknown = [pid for pid in match.player_ids if pid not in roster_ids]
        if unknown:
            raise ValidationError(f"Unknown player id(s): {', '.join(unknown)}.")


def validate_batch(
    matches: Sequence[Match],
    roster_ids: Optional[Collection[str]] = None,
    *,
    max_score: Optional[int] = 99,
) -> Sequence[Match]:
    """Validate every record, reporting the first failure with its index."""

    for index, match in enumerate(matches, start=1):
        try:
            validate_match(match, roster_ids, max_score=max_score)
        except ValidationError as exc:
            raise ValidationError(exc.detail, index=index) from exc
    return matches
