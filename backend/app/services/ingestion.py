"""Merge newly registered or imported matches into the match log.

Single-match registration pre-assigns the next free sequence number;
bulk imports arrive ``UNASSIGNED`` and are numbered here, in batch order,
continuing from the highest number already in the log.

The merge does not deduplicate by content. Importing the same sheet twice
yields a second copy of every match under new ids and numbers. Callers that
want to warn about this can use :func:`find_repeated_matches` before merging.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Iterable, Sequence

from ..domain import Assigned, Match, Snapshot
from ..exceptions import MergeInvariantViolation

logger = logging.getLogger(__name__)


def max_sequence_number(matches: Iterable[Match]) -> int:
    highest = 0
    for match in matches:
        if isinstance(match.sequence, Assigned):
            highest = max(highest, match.sequence.value)
    return highest


def next_sequence_number(matches: Iterable[Match]) -> int:
    return max_sequence_number(matches) + 1


def _assign_numbers(existing: Sequence[Match], incoming: Sequence[Match]) -> list[Match]:
    current = max_sequence_number(existing)
    processed: list[Match] = []
    for match in incoming:
        if isinstance(match.sequence, Assigned):
            processed.append(match)
            continue
        current += 1
        processed.append(replace(match, sequence=Assigned(current)))
    return processed


def _check_unique(matches: Sequence[Match]) -> None:
    unnumbered = [m.id for m in matches if not isinstance(m.sequence, Assigned)]
    if unnumbered:
        raise MergeInvariantViolation(
            "match log holds unnumbered match(es): " + ", ".join(unnumbered)
        )
    seq_counts = Counter(m.sequence for m in matches)
    clashes = sorted(seq.value for seq, n in seq_counts.items() if n > 1)
    if clashes:
        raise MergeInvariantViolation(
            "sequence number(s) already in use: " + ", ".join(str(v) for v in clashes)
        )
    id_counts = Counter(m.id for m in matches)
    dup_ids = sorted(mid for mid, n in id_counts.items() if n > 1)
    if dup_ids:
        raise MergeInvariantViolation("duplicate match id(s): " + ", ".join(dup_ids))


def merge_matches(
    existing: Sequence[Match], incoming: Sequence[Match]
) -> tuple[Match, ...]:
    """Return the merged log ordered by ``(date, sequence number)``.

    Raises:
        MergeInvariantViolation: if two records end up sharing a sequence
            number or a match id. Nothing is partially applied.
    """

    processed = _assign_numbers(existing, incoming)
    combined = [*existing, *processed]
    _check_unique(combined)
    combined.sort(key=lambda m: m.order_key())
    logger.info(
        "Merged %d match(es) into a log of %d (now %d)",
        len(processed),
        len(existing),
        len(combined),
    )
    return tuple(combined)


def merge_into_snapshot(snapshot: Snapshot, incoming: Sequence[Match]) -> Snapshot:
    merged = merge_matches(snapshot.matches, incoming)
    return Snapshot(
        players=snapshot.players, matches=merged, version=snapshot.version + 1
    )


def _content_key(match: Match) -> tuple[date, frozenset[str], int, frozenset[str], int]:
    # Sides are normalised so "A beat B" and "B lost to A" compare equal.
    side_a = (frozenset(match.team_a.players), match.team_a.score)
    side_b = (frozenset(match.team_b.players), match.team_b.score)
    first, second = sorted([side_a, side_b], key=lambda s: (sorted(s[0]), s[1]))
    return (match.date, first[0], first[1], second[0], second[1])


def find_repeated_matches(
    existing: Iterable[Match], incoming: Iterable[Match]
) -> list[Match]:
    """Return incoming records whose content already appears in ``existing``
    or earlier in ``incoming``."""

    seen = {_content_key(m) for m in existing}
    repeated: list[Match] = []
    for match in incoming:
        key = _content_key(match)
        if key in seen:
            repeated.append(match)
        else:
            seen.add(key)
    return repeated
