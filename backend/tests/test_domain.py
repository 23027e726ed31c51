from datetime import date

import pytest

from app.domain import (
    UNASSIGNED,
    Assigned,
    Player,
    match_from_record,
    match_to_record,
    sequence_from_int,
    sequence_to_int,
    snapshot_from_records,
    snapshot_to_records,
)
from app.exceptions import MergeInvariantViolation
from app.services.validation import ValidationError


def test_sequence_sentinel_mapping() -> None:
    assert sequence_from_int(0) is UNASSIGNED
    assert sequence_from_int(4) == Assigned(4)
    assert sequence_to_int(Assigned(4)) == 4
    with pytest.raises(MergeInvariantViolation):
        sequence_to_int(UNASSIGNED)


@pytest.mark.parametrize(
    "dob, today, expected",
    [
        (date(1990, 6, 15), date(2024, 6, 14), 33),
        (date(1990, 6, 15), date(2024, 6, 15), 34),
        (None, date(2024, 1, 1), None),
    ],
)
def test_age_on(dob, today, expected) -> None:
    assert Player(id="p", name="P", date_of_birth=dob).age_on(today) == expected


def test_legacy_records_are_read() -> None:
    snap = snapshot_from_records(
        {
            "players": [{"id": "p1", "name": "Ana", "dob": "1990-01-02"}],
            "matches": [
                {
                    "id": "m1",
                    "dayId": 0,
                    "date": "2024-01-05T00:00:00.000Z",
                    "teamA": {"players": ["p1", "p2"], "score": 2},
                    "teamB": {"players": ["p3", "p4"], "score": 1},
                }
            ],
        }
    )
    assert snap.players[0].date_of_birth == date(1990, 1, 2)
    assert snap.matches[0].sequence is UNASSIGNED
    assert snap.matches[0].date == date(2024, 1, 5)


def test_records_written_with_current_field_names() -> None:
    match = match_from_record(
        {
            "id": "m1",
            "sequenceNumber": 3,
            "date": "2024-01-05",
            "teamA": {"players": ["p1", "p2"], "score": 2},
            "teamB": {"players": ["p3", "p4"], "score": 1},
        }
    )
    record = match_to_record(match)
    assert record["sequenceNumber"] == 3
    assert "dayId" not in record
    assert snapshot_to_records(snapshot_from_records({})) == {"players": [], "matches": []}


@pytest.mark.parametrize("score", [2.7, "two"])
def test_match_record_with_non_integer_score_is_rejected(score) -> None:
    with pytest.raises(ValidationError) as excinfo:
        match_from_record(
            {
                "id": "m1",
                "sequenceNumber": 1,
                "date": "2024-01-05",
                "teamA": {"players": ["p1", "p2"], "score": score},
                "teamB": {"players": ["p3", "p4"], "score": 1},
            }
        )
    assert "Team A score" in excinfo.value.detail
    assert "integer" in excinfo.value.detail


def test_integral_float_score_is_accepted() -> None:
    match = match_from_record(
        {
            "id": "m1",
            "sequenceNumber": 1,
            "date": "2024-01-05",
            "teamA": {"players": ["p1", "p2"], "score": 6.0},
            "teamB": {"players": ["p3", "p4"], "score": 4},
        }
    )
    assert match.team_a.score == 6


def test_null_sequence_number_falls_back_to_day_id() -> None:
    match = match_from_record(
        {
            "id": "m1",
            "sequenceNumber": None,
            "dayId": 7,
            "date": "2024-01-05",
            "teamA": {"players": ["p1", "p2"], "score": 2},
            "teamB": {"players": ["p3", "p4"], "score": 1},
        }
    )
    assert match.sequence == Assigned(7)
