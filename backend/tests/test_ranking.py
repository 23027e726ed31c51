from datetime import date

from app.domain import UNASSIGNED, Match, Player, TeamResult
from app.scoring import league_points
from app.services.ingestion import merge_matches
from app.services.ranking import collation_key, compute_rankings, ranking_for

ROSTER = (
    Player(id="p1", name="Player A"),
    Player(id="p2", name="Player B"),
    Player(id="p3", name="Player C"),
    Player(id="p4", name="Player D"),
)


def _match(mid, a, b, score_a, score_b, day=date(2024, 1, 5)):
    return Match(
        id=mid,
        sequence=UNASSIGNED,
        date=day,
        team_a=TeamResult(players=a, score=score_a),
        team_b=TeamResult(players=b, score=score_b),
    )


def test_single_match_scenario() -> None:
    log = merge_matches((), [_match("m1", ("p1", "p2"), ("p3", "p4"), 2, 1)])
    rankings = compute_rankings(ROSTER, log)

    assert [r.player_id for r in rankings] == ["p1", "p2", "p3", "p4"]
    for pid in ("p1", "p2"):
        r = ranking_for(pid, rankings)
        assert (r.games_played, r.wins, r.losses, r.win_rate) == (1, 1, 0, 1.0)
    for pid in ("p3", "p4"):
        r = ranking_for(pid, rankings)
        assert (r.games_played, r.wins, r.losses, r.win_rate) == (1, 0, 1, 0.0)


def test_tie_counts_game_but_no_result() -> None:
    log = merge_matches((), [_match("m1", ("p1", "p2"), ("p3", "p4"), 5, 5)])
    for r in compute_rankings(ROSTER, log):
        assert (r.games_played, r.wins, r.losses, r.ties) == (1, 0, 0, 1)
        assert r.games_played == r.wins + r.losses + r.ties


def test_players_without_games_are_listed_last() -> None:
    roster = ROSTER + (Player(id="p5", name="Aaron"),)
    log = merge_matches((), [_match("m1", ("p1", "p2"), ("p3", "p4"), 0, 6)])
    rankings = compute_rankings(roster, log)

    assert len(rankings) == 5
    assert rankings[-1].player_id == "p5"
    assert rankings[-1].performance_score == 0.0
    assert rankings[-1].win_rate == 0.0


def test_inactive_players_can_sort_by_score_only() -> None:
    roster = ROSTER + (Player(id="p5", name="Aaron"),)
    log = merge_matches((), [_match("m1", ("p1", "p2"), ("p3", "p4"), 0, 6)])
    rankings = compute_rankings(roster, log, league_points, inactive_last=False)
    # Losers and the idle player all score 0; the name decides.
    assert [r.player_id for r in rankings] == ["p3", "p4", "p5", "p1", "p2"]


def test_order_is_score_then_win_rate_then_name() -> None:
    roster = (
        Player(id="x", name="Zoë"),
        Player(id="y", name="ana"),
        Player(id="z", name="Bruno"),
        Player(id="w", name="Carla"),
    )
    log = merge_matches(
        (),
        [
            _match("m1", ("x", "y"), ("z", "w"), 6, 2),
            _match("m2", ("x", "z"), ("y", "w"), 6, 3),
        ],
    )
    rankings = compute_rankings(roster, log)
    # x: 2 wins (score 8); y, z: 1 win (score 5) tied on win rate too.
    assert [r.player_id for r in rankings] == ["x", "y", "z", "w"]


def test_name_tiebreak_ignores_case_and_accents() -> None:
    assert collation_key("Ágata") == collation_key("agata")
    roster = (
        Player(id="1", name="Élodie"),
        Player(id="2", name="edgar"),
        Player(id="3", name="Fabio"),
        Player(id="4", name="Davi"),
    )
    rankings = compute_rankings(roster, [])
    assert [r.name for r in rankings] == ["Davi", "edgar", "Élodie", "Fabio"]


def test_identical_names_fall_back_to_id() -> None:
    roster = (Player(id="b", name="Sam"), Player(id="a", name="Sam"))
    assert [r.player_id for r in compute_rankings(roster, [])] == ["a", "b"]


def test_unknown_ids_in_log_are_ignored() -> None:
    log = merge_matches((), [_match("m1", ("p1", "ghost"), ("p3", "p4"), 2, 1)])
    rankings = compute_rankings(ROSTER, log)
    assert {r.player_id for r in rankings} == {"p1", "p2", "p3", "p4"}
    assert ranking_for("p2", rankings).games_played == 0


def test_policy_changes_scores_not_counts() -> None:
    log = merge_matches(
        (),
        [
            _match("m1", ("p1", "p2"), ("p3", "p4"), 4, 4),
            _match("m2", ("p1", "p3"), ("p2", "p4"), 6, 1),
        ],
    )
    rankings = compute_rankings(ROSTER, log, league_points)
    p1 = ranking_for("p1", rankings)
    assert (p1.wins, p1.ties, p1.performance_score) == (1, 1, 4.0)
    assert rankings[0].player_id == "p1"


def test_mixed_log_counts_add_up() -> None:
    log = merge_matches(
        (),
        [
            _match("m1", ("p1", "p2"), ("p3", "p4"), 6, 2),
            _match("m2", ("p1", "p3"), ("p2", "p4"), 1, 6),
            _match("m3", ("p1", "p4"), ("p2", "p3"), 3, 3),
        ],
    )
    rankings = compute_rankings(ROSTER, log)
    expected = {
        "p1": (3, 1, 1, 1),
        "p2": (3, 2, 0, 1),
        "p3": (3, 0, 2, 1),
        "p4": (3, 1, 1, 1),
    }
    for pid, counts in expected.items():
        r = ranking_for(pid, rankings)
        assert (r.games_played, r.wins, r.losses, r.ties) == counts
    for r in rankings:
        assert r.ties >= 0
        assert r.games_played == r.wins + r.losses + r.ties
