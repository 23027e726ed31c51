from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..db import get_session
from ..exceptions import ProblemDetail, http_problem
from ..schemas import BalancingIn, RankingAdviceOut, TeamSuggestion
from ..scoring import get_policy
from ..services import ValidationError, compute_rankings
from ..services import store
from ..services.balancing import suggest_ranking_formula, suggest_teams

router = APIRouter(
    prefix="/balancing",
    tags=["balancing"],
    responses={
        422: {"model": ProblemDetail},
        502: {"model": ProblemDetail},
        503: {"model": ProblemDetail},
    },
)


@router.post("/teams", response_model=TeamSuggestion)
async def balanced_teams(
    body: BalancingIn,
    session: AsyncSession = Depends(get_session),
):
    settings = get_settings()
    snapshot = await store.load_snapshot(session)
    known = snapshot.player_ids()
    unknown = [pid for pid in body.attendance if pid not in known]
    if unknown:
        raise http_problem(
            status_code=422,
            detail=f"Unknown player id(s): {', '.join(unknown)}",
            code="unknown_player",
        )

    rankings = compute_rankings(
        snapshot.players, snapshot.matches, get_policy(settings.ranking_policy)
    )
    # Release the read transaction before the slow model call.
    await session.rollback()
    try:
        return await suggest_teams(rankings, body.attendance, settings=settings)
    except ValidationError as exc:
        raise http_problem(status_code=422, detail=exc.detail, code="not_enough_players")


@router.get("/ranking-formula", response_model=RankingAdviceOut)
async def ranking_formula():
    return RankingAdviceOut(advice=await suggest_ranking_formula(settings=get_settings()))
