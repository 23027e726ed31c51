"""Classic league table points: 3 for a win, 1 for a tied game."""

NAME = "league_points"

WIN_POINTS = 3.0
TIE_POINTS = 1.0


def score(wins: int, losses: int, games_played: int) -> float:
    ties = max(games_played - wins - losses, 0)
    return wins * WIN_POINTS + ties * TIE_POINTS
