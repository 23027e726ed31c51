"""Derive per-player statistics and the ranking order from the match log."""

from __future__ import annotations

import logging
import unicodedata
from typing import Iterable, Optional, Sequence

from ..domain import IndividualRanking, Match, Player
from ..scoring import ScoringPolicy, get_policy

logger = logging.getLogger(__name__)


def collation_key(name: str) -> str:
    """Case- and accent-insensitive key so "Ágata" sorts next to "agata"."""

    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def _tally(
    players: Sequence[Player], matches: Iterable[Match]
) -> dict[str, dict[str, int]]:
    stats = {p.id: {"games": 0, "wins": 0, "losses": 0} for p in players}
    for match in matches:
        winner = match.winner
        for side, team in (("A", match.team_a), ("B", match.team_b)):
            for pid in team.players:
                entry = stats.get(pid)
                if entry is None:
                    logger.debug("Match %s references unknown player %s", match.id, pid)
                    continue
                entry["games"] += 1
                if winner is None:
                    continue
                if winner == side:
                    entry["wins"] += 1
                else:
                    entry["losses"] += 1
    return stats


def _sort_key(ranking: IndividualRanking, inactive_last: bool):
    return (
        1 if inactive_last and ranking.games_played == 0 else 0,
        -ranking.performance_score,
        -ranking.win_rate,
        collation_key(ranking.name),
        ranking.name.casefold(),
        ranking.player_id,
    )


def compute_rankings(
    players: Sequence[Player],
    matches: Iterable[Match],
    policy: Optional[ScoringPolicy] = None,
    *,
    inactive_last: bool = True,
) -> list[IndividualRanking]:
    """Return one ranking entry per roster player, best first.

    Args:
        players: The roster. Players without matches are included.
        matches: The match log. Ids missing from the roster are ignored.
        policy: Scoring policy; the default policy when omitted.
        inactive_last: Keep players with no games below everyone who played.

    Order: performance score desc, win rate desc, name (case- and
    accent-insensitive) asc, then player id so the order is total.
    """

    policy = policy or get_policy()
    stats = _tally(players, matches)

    rankings: list[IndividualRanking] = []
    for player in players:
        entry = stats[player.id]
        games, wins, losses = entry["games"], entry["wins"], entry["losses"]
        rankings.append(
            IndividualRanking(
                player_id=player.id,
                name=player.name,
                games_played=games,
                wins=wins,
                losses=losses,
                performance_score=float(policy.score(wins, losses, games)) if games else 0.0,
                win_rate=wins / games if games else 0.0,
            )
        )

    rankings.sort(key=lambda r: _sort_key(r, inactive_last))
    return rankings


def ranking_for(
    player_id: str, rankings: Iterable[IndividualRanking]
) -> Optional[IndividualRanking]:
    return next((r for r in rankings if r.player_id == player_id), None)
