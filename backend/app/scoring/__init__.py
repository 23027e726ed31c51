"""Performance score policies used to rank players.

Each policy module exposes ``NAME`` and ``score(wins, losses, games_played)``.
Every policy must be non-decreasing in ``wins`` and must never lose points
when a won game is added, so players who simply play more are not punished
for the extra losses they collect.
"""

from types import ModuleType
from typing import Protocol

from . import league_points, participation


class ScoringPolicy(Protocol):
    NAME: str

    def score(self, wins: int, losses: int, games_played: int) -> float: ...


_POLICIES: dict[str, ModuleType] = {
    participation.NAME: participation,
    league_points.NAME: league_points,
}

DEFAULT_POLICY = participation.NAME


def available_policies() -> list[str]:
    return sorted(_POLICIES)


def get_policy(name: str | None = None) -> ScoringPolicy:
    """Return the policy registered under ``name`` (the default when empty)."""

    key = (name or DEFAULT_POLICY).strip().lower()
    if key not in _POLICIES:
        raise KeyError(
            f"unknown ranking policy {name!r}; choose one of {', '.join(available_policies())}"
        )
    return _POLICIES[key]  # type: ignore[return-value]


__all__ = [
    "ScoringPolicy",
    "available_policies",
    "get_policy",
    "league_points",
    "participation",
]
