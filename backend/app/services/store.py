"""Load and persist roster/match-log snapshots.

The ingestion and ranking services work on :class:`~app.domain.Snapshot`
values. This module is the only place that reads or writes the tables, and
it does so after a pure operation has produced the new state. Writes carry
the version of the snapshot they were computed from; a concurrent writer
that got there first makes the later write fail with ``StaleSnapshot``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .. import domain
from ..db_errors import is_unique_violation
from ..exceptions import (
    MergeInvariantViolation,
    PlayerAlreadyExists,
    PlayerNotFound,
    StaleSnapshot,
)
from ..models import LedgerState, Match, PendingPlayer, Player
from .importer import normalize_name
from .roster import PlayerRemoval

logger = logging.getLogger(__name__)

LEDGER_ROW_ID = 1


def player_from_row(row: Player) -> domain.Player:
    return domain.Player(id=row.id, name=row.name, date_of_birth=row.date_of_birth)


def match_from_row(row: Match) -> domain.Match:
    return domain.Match(
        id=row.id,
        sequence=domain.sequence_from_int(row.sequence_number),
        date=row.played_on,
        team_a=domain.TeamResult(
            players=tuple(row.team_a_player_ids or ()), score=row.team_a_score
        ),
        team_b=domain.TeamResult(
            players=tuple(row.team_b_player_ids or ()), score=row.team_b_score
        ),
    )


def match_to_row(match: domain.Match) -> Match:
    return Match(
        id=match.id,
        # Refuses UNASSIGNED: numbers are given out during ingestion only.
        sequence_number=domain.sequence_to_int(match.sequence),
        played_on=match.date,
        team_a_player_ids=list(match.team_a.players),
        team_a_score=match.team_a.score,
        team_b_player_ids=list(match.team_b.players),
        team_b_score=match.team_b.score,
    )


async def current_version(session: AsyncSession) -> int:
    version = (
        await session.execute(
            select(LedgerState.version).where(LedgerState.id == LEDGER_ROW_ID)
        )
    ).scalar_one_or_none()
    return version or 0


async def _bump_version(session: AsyncSession, expected: int) -> int:
    actual = (
        await session.execute(
            select(LedgerState.version).where(LedgerState.id == LEDGER_ROW_ID)
        )
    ).scalar_one_or_none()
    if actual is None:
        if expected != 0:
            raise StaleSnapshot(expected, 0)
        session.add(LedgerState(id=LEDGER_ROW_ID, version=1))
        return 1
    if actual != expected:
        raise StaleSnapshot(expected, actual)
    result = await session.execute(
        update(LedgerState)
        .where(LedgerState.id == LEDGER_ROW_ID, LedgerState.version == expected)
        .values(version=expected + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StaleSnapshot(expected, await current_version(session))
    return expected + 1


async def _commit(
    session: AsyncSession, expected: int, *, player_name: Optional[str] = None
) -> None:
    """Commit, translating unique violations from concurrent writers."""

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc, "ledger_state"):
            raise StaleSnapshot(expected, await current_version(session)) from exc
        if player_name is not None and is_unique_violation(exc, "uq_player_name_lower"):
            raise PlayerAlreadyExists(player_name) from exc
        if is_unique_violation(exc, "sequence_number"):
            raise MergeInvariantViolation(
                "sequence number taken by a concurrent write"
            ) from exc
        raise


async def load_snapshot(session: AsyncSession) -> domain.Snapshot:
    players = (
        await session.execute(select(Player).order_by(Player.created_at, Player.id))
    ).scalars().all()
    matches = (
        await session.execute(
            select(Match).order_by(Match.played_on, Match.sequence_number)
        )
    ).scalars().all()
    return domain.Snapshot(
        players=tuple(player_from_row(p) for p in players),
        matches=tuple(match_from_row(m) for m in matches),
        version=await current_version(session),
    )


async def save_merge(
    session: AsyncSession, before: domain.Snapshot, after: domain.Snapshot
) -> list[domain.Match]:
    """Persist the matches ``after`` gained over ``before``."""

    known = {m.id for m in before.matches}
    added = [m for m in after.matches if m.id not in known]
    await _bump_version(session, before.version)
    session.add_all([match_to_row(m) for m in added])
    await _commit(session, before.version)
    logger.info("Stored %d new match(es) at version %d", len(added), after.version)
    return added


async def save_removal(
    session: AsyncSession, before: domain.Snapshot, removal: PlayerRemoval
) -> None:
    remaining = removal.snapshot.player_ids()
    gone = [p.id for p in before.players if p.id not in remaining]
    match_ids = [m.id for m in removal.removed_matches]

    await _bump_version(session, before.version)
    if match_ids:
        await session.execute(delete(Match).where(Match.id.in_(match_ids)))
    if gone:
        await session.execute(delete(Player).where(Player.id.in_(gone)))
    await _commit(session, before.version)
    logger.info(
        "Deleted player(s) %s and %d match(es)", ", ".join(gone), len(match_ids)
    )


async def _name_taken(
    session: AsyncSession, name: str, *, exclude_id: Optional[str] = None
) -> bool:
    stmt = select(Player.id).where(func.lower(Player.name) == name.lower())
    if exclude_id:
        stmt = stmt.where(Player.id != exclude_id)
    return (await session.execute(stmt)).first() is not None


async def add_player(
    session: AsyncSession, name: str, date_of_birth: Optional[date] = None
) -> domain.Player:
    """Register a player; clears any pending entry with the same name."""

    if await _name_taken(session, name):
        raise PlayerAlreadyExists(name)
    await session.execute(
        delete(PendingPlayer).where(PendingPlayer.name_key == normalize_name(name))
    )
    version = await current_version(session)
    pid = uuid.uuid4().hex
    await _bump_version(session, version)
    session.add(Player(id=pid, name=name, date_of_birth=date_of_birth))
    await _commit(session, version, player_name=name)
    return domain.Player(id=pid, name=name, date_of_birth=date_of_birth)


async def update_player(
    session: AsyncSession,
    player_id: str,
    name: str,
    date_of_birth: Optional[date] = None,
) -> domain.Player:
    row = await session.get(Player, player_id)
    if row is None:
        raise PlayerNotFound(player_id)
    if await _name_taken(session, name, exclude_id=player_id):
        raise PlayerAlreadyExists(name)
    version = await current_version(session)
    await _bump_version(session, version)
    row.name = name
    row.date_of_birth = date_of_birth
    await _commit(session, version, player_name=name)
    return player_from_row(row)


async def record_pending(session: AsyncSession, names: Iterable[str]) -> None:
    existing = set(
        (await session.execute(select(PendingPlayer.name_key))).scalars().all()
    )
    for name in names:
        key = normalize_name(name)
        if key and key not in existing:
            session.add(PendingPlayer(name_key=key, name=name))
            existing.add(key)
    await session.commit()


async def list_pending(session: AsyncSession) -> list[str]:
    rows = (
        await session.execute(
            select(PendingPlayer).order_by(
                PendingPlayer.created_at, PendingPlayer.name_key
            )
        )
    ).scalars().all()
    return [r.name for r in rows]


async def import_snapshot(session: AsyncSession, snapshot: domain.Snapshot) -> None:
    """Load a saved state into an empty database."""

    if (await session.execute(select(Player.id).limit(1))).first() is not None:
        raise StaleSnapshot(0, await current_version(session))
    await _bump_version(session, 0)
    session.add_all(
        Player(id=p.id, name=p.name, date_of_birth=p.date_of_birth)
        for p in snapshot.players
    )
    session.add_all(match_to_row(m) for m in snapshot.matches)
    await _commit(session, 0)
