"""Roster changes that touch the match log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..domain import Match, Snapshot
from ..exceptions import PlayerNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerRemoval:
    snapshot: Snapshot
    removed_matches: tuple[Match, ...]


def matches_involving(player_id: str, matches: Iterable[Match]) -> list[Match]:
    return [m for m in matches if m.involves(player_id)]


def remove_player(snapshot: Snapshot, player_id: str) -> PlayerRemoval:
    """Remove a player and then every match whose teams include them.

    This is irreversible once persisted; callers confirm with the user first.
    Remaining matches keep their ids and sequence numbers.
    """

    if player_id not in snapshot.player_ids():
        raise PlayerNotFound(player_id)

    players = tuple(p for p in snapshot.players if p.id != player_id)
    kept: list[Match] = []
    removed: list[Match] = []
    for match in snapshot.matches:
        (removed if match.involves(player_id) else kept).append(match)

    logger.info(
        "Removing player %s cascades to %d match(es)", player_id, len(removed)
    )
    return PlayerRemoval(
        snapshot=Snapshot(
            players=players, matches=tuple(kept), version=snapshot.version + 1
        ),
        removed_matches=tuple(removed),
    )
