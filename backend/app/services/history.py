"""Match history listing, filtering and CSV export."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..domain import Match, Player, sequence_to_int

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

EXPORT_COLUMNS = [
    "Date",
    "Match No.",
    "Player 1",
    "Player 2",
    "Team A",
    "Team B",
    "Player 3",
    "Player 4",
]


def parse_weekday(value: str) -> int:
    """Return ``date.weekday()`` numbering for a day name or 3-letter prefix."""

    key = (value or "").strip().lower()
    for index, day in enumerate(WEEKDAYS):
        if key and (key == day or key == day[:3]):
            return index
    raise ValueError(f"unknown weekday: {value!r}")


@dataclass(frozen=True)
class HistoryFilter:
    weekday: Optional[int] = None
    on_date: Optional[date] = None
    player: Optional[str] = None
    other_player: Optional[str] = None
    score_a: Optional[int] = None
    score_b: Optional[int] = None


def _names_in(match: Match, names: Mapping[str, str]) -> set[str]:
    return {names.get(pid, "").casefold() for pid in match.player_ids}


def filter_matches(
    matches: Iterable[Match],
    players: Iterable[Player],
    criteria: HistoryFilter = HistoryFilter(),
) -> list[Match]:
    """Return matching records newest first (date, then sequence number)."""

    names = {p.id: p.name for p in players}
    wanted = [
        n.casefold() for n in (criteria.player, criteria.other_player) if n
    ]

    result: list[Match] = []
    for match in matches:
        if criteria.weekday is not None and match.date.weekday() != criteria.weekday:
            continue
        if criteria.on_date is not None and match.date != criteria.on_date:
            continue
        if wanted:
            present = _names_in(match, names)
            if any(name not in present for name in wanted):
                continue
        if criteria.score_a is not None and match.team_a.score != criteria.score_a:
            continue
        if criteria.score_b is not None and match.team_b.score != criteria.score_b:
            continue
        result.append(match)

    result.sort(key=lambda m: m.order_key(), reverse=True)
    return result


def export_rows(
    matches: Sequence[Match], players: Iterable[Player]
) -> list[dict[str, object]]:
    names = {p.id: p.name for p in players}

    def name_of(pid: str) -> str:
        return names.get(pid, "N/A")

    return [
        {
            "Date": m.date.isoformat(),
            "Match No.": sequence_to_int(m.sequence),
            "Player 1": name_of(m.team_a.players[0]),
            "Player 2": name_of(m.team_a.players[1]),
            "Team A": m.team_a.score,
            "Team B": m.team_b.score,
            "Player 3": name_of(m.team_b.players[0]),
            "Player 4": name_of(m.team_b.players[1]),
        }
        for m in matches
    ]


def export_csv(matches: Sequence[Match], players: Iterable[Player]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    writer.writerows(export_rows(matches, players))
    return buffer.getvalue()
