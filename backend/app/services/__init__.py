"""Internal application services.

Everything except ``store`` and ``balancing`` is pure and does no I/O.
"""

from .validation import ValidationError, validate_batch, validate_match
from .ingestion import (
    find_repeated_matches,
    merge_into_snapshot,
    merge_matches,
    next_sequence_number,
)
from .ranking import compute_rankings, ranking_for
from .roster import PlayerRemoval, matches_involving, remove_player
from .importer import ImportRow, ImportResolution, resolve_import_rows
from .history import HistoryFilter, export_csv, filter_matches

__all__ = [
    "ValidationError",
    "validate_batch",
    "validate_match",
    "find_repeated_matches",
    "merge_into_snapshot",
    "merge_matches",
    "next_sequence_number",
    "compute_rankings",
    "ranking_for",
    "PlayerRemoval",
    "matches_involving",
    "remove_player",
    "ImportRow",
    "ImportResolution",
    "resolve_import_rows",
    "HistoryFilter",
    "export_csv",
    "filter_matches",
]
