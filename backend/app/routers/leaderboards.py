from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..db import get_session
from ..domain import IndividualRanking
from ..exceptions import ProblemDetail, http_problem
from ..schemas import LeaderboardEntryOut, LeaderboardOut
from ..scoring import get_policy
from ..services import compute_rankings
from ..services import store

# Resource-only prefix; no /api or /api/v0 here
router = APIRouter(
    prefix="/leaderboards",
    tags=["leaderboards"],
    responses={422: {"model": ProblemDetail}},
)


def leaderboard_entry(rank: int, ranking: IndividualRanking) -> LeaderboardEntryOut:
    return LeaderboardEntryOut(
        rank=rank,
        playerId=ranking.player_id,
        playerName=ranking.name,
        gamesPlayed=ranking.games_played,
        wins=ranking.wins,
        losses=ranking.losses,
        ties=ranking.ties,
        performanceScore=round(ranking.performance_score, 1),
        winRate=round(ranking.win_rate, 3),
    )


# GET /api/v0/leaderboards?policy=league_points
@router.get("", response_model=LeaderboardOut)
async def leaderboard(
    policy: Optional[str] = None,
    include_inactive: bool = Query(True, alias="includeInactive"),
    session: AsyncSession = Depends(get_session),
):
    name = policy or get_settings().ranking_policy
    try:
        scoring = get_policy(name)
    except KeyError as exc:
        raise http_problem(status_code=422, detail=exc.args[0], code="unknown_policy")

    snapshot = await store.load_snapshot(session)
    rankings = compute_rankings(snapshot.players, snapshot.matches, scoring)
    if not include_inactive:
        rankings = [r for r in rankings if r.games_played > 0]

    leaders = [leaderboard_entry(i, r) for i, r in enumerate(rankings, start=1)]
    return LeaderboardOut(policy=scoring.NAME, leaders=leaders, total=len(leaders))
