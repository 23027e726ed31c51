"""Helpers for working with database/SQLAlchemy errors."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

_UNIQUE_VIOLATION_SQLSTATES = {"23505"}


def is_unique_violation(exc: SQLAlchemyError, marker: str | None = None) -> bool:
    """Return ``True`` if ``exc`` is a unique-constraint failure.

    Parameters
    ----------
    exc:
        The SQLAlchemy exception to inspect.
    marker:
        Optional substring (a table, column or index name such as
        ``"ledger_state"`` or ``"uq_player_name_lower"``) that must appear in
        the original database error message. When omitted, any unique
        violation matches.
    """

    orig = getattr(exc, "orig", None)
    if orig is None:
        return False

    message = str(orig).lower()
    if marker and marker.lower() not in message:
        return False

    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _UNIQUE_VIOLATION_SQLSTATES:
        return True

    return "unique constraint" in message or "duplicate key" in message
