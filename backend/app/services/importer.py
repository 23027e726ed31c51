"""Turn imported match rows (players given by name) into match records.

Spreadsheet parsing happens elsewhere; this module receives already-read
rows. Rows naming a player who is not on the roster are left out of the
batch and the unknown names are reported back as pending registrations.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ..domain import UNASSIGNED, Match, Player, TeamResult
from .validation import ValidationError, validate_match, validate_score_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportRow:
    date: date
    team_a: tuple[str, str]
    score_a: object
    team_b: tuple[str, str]
    score_b: object


@dataclass(frozen=True)
class RejectedRow:
    index: int
    detail: str


@dataclass(frozen=True)
class ImportResolution:
    matches: tuple[Match, ...]
    pending_names: tuple[str, ...]
    skipped_rows: tuple[int, ...]
    rejected: tuple[RejectedRow, ...]


def normalize_name(name: str) -> str:
    return " ".join((name or "").split()).casefold()


def _default_id() -> str:
    return uuid.uuid4().hex


def resolve_import_rows(
    rows: Sequence[ImportRow],
    players: Iterable[Player],
    *,
    id_factory: Callable[[], str] = _default_id,
    max_score: Optional[int] = 99,
) -> ImportResolution:
    """Resolve player names to ids and build unnumbered match records.

    Row indexes in the result are 1-based, in input order.
    """

    by_name: dict[str, str] = {}
    for player in players:
        by_name.setdefault(normalize_name(player.name), player.id)

    matches: list[Match] = []
    pending: dict[str, str] = {}
    skipped: list[int] = []
    rejected: list[RejectedRow] = []

    for index, row in enumerate(rows, start=1):
        names = [*row.team_a, *row.team_b]
        unknown = [n for n in names if normalize_name(n) not in by_name]
        if unknown:
            for name in unknown:
                key = normalize_name(name)
                if key:
                    pending.setdefault(key, " ".join(name.split()))
            skipped.append(index)
            continue

        try:
            score_a = validate_score_value(row.score_a, "Team A score", max_value=max_score)
            score_b = validate_score_value(row.score_b, "Team B score", max_value=max_score)
            match = Match(
                id=id_factory(),
                sequence=UNASSIGNED,
                date=row.date,
                team_a=TeamResult(
                    players=tuple(by_name[normalize_name(n)] for n in row.team_a),
                    score=score_a,
                ),
                team_b=TeamResult(
                    players=tuple(by_name[normalize_name(n)] for n in row.team_b),
                    score=score_b,
                ),
            )
            validate_match(match, max_score=max_score)
        except ValidationError as exc:
            rejected.append(RejectedRow(index=index, detail=exc.detail))
            continue
        matches.append(match)

    if pending:
        logger.info(
            "Import skipped %d row(s); %d player(s) pending registration",
            len(skipped),
            len(pending),
        )
    return ImportResolution(
        matches=tuple(matches),
        pending_names=tuple(pending.values()),
        skipped_rows=tuple(skipped),
        rejected=tuple(rejected),
    )
