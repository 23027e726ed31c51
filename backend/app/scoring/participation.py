"""Participation-weighted score.

Three points per win plus one point per game played, so turning up is
rewarded and a loss never costs anything.
"""

NAME = "participation"

WIN_POINTS = 3.0
GAME_POINTS = 1.0


def score(wins: int, losses: int, games_played: int) -> float:
    if games_played <= 0:
        return 0.0
    return wins * WIN_POINTS + games_played * GAME_POINTS
