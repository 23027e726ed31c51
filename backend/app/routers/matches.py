# backend/app/routers/matches.py
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .. import domain
from ..config import get_settings
from ..db import get_session
from ..exceptions import ProblemDetail, http_problem
from ..schemas import (
    ImportIn,
    ImportOut,
    MatchCreate,
    MatchIdOut,
    MatchOut,
    NextSequenceOut,
    RejectedRowOut,
    TeamOut,
)
from ..services import (
    HistoryFilter,
    ImportRow,
    ValidationError,
    export_csv,
    filter_matches,
    find_repeated_matches,
    merge_into_snapshot,
    next_sequence_number,
    resolve_import_rows,
    validate_match,
)
from ..services import store
from ..services.history import parse_weekday

# Resource-only prefix; versioning is added in main.py
router = APIRouter(
    prefix="/matches",
    tags=["matches"],
    responses={409: {"model": ProblemDetail}, 422: {"model": ProblemDetail}},
)


def _team_out(team: domain.TeamResult, names: dict[str, str]) -> TeamOut:
    return TeamOut(
        playerIds=list(team.players),
        playerNames=[names.get(pid, "N/A") for pid in team.players],
        score=team.score,
    )


def match_out(match: domain.Match, names: dict[str, str]) -> MatchOut:
    return MatchOut(
        id=match.id,
        sequenceNumber=domain.sequence_to_int(match.sequence),
        date=match.date,
        teamA=_team_out(match.team_a, names),
        teamB=_team_out(match.team_b, names),
    )


def _history_filter(
    weekday: Optional[str],
    on_date: Optional[date],
    player: Optional[str],
    other_player: Optional[str],
    score_a: Optional[int],
    score_b: Optional[int],
) -> HistoryFilter:
    try:
        day = parse_weekday(weekday) if weekday else None
    except ValueError as exc:
        raise http_problem(status_code=422, detail=str(exc), code="invalid_weekday")
    return HistoryFilter(
        weekday=day,
        on_date=on_date,
        player=player,
        other_player=other_player,
        score_a=score_a,
        score_b=score_b,
    )


# GET /api/v0/matches?weekday=tue&player=Ana
@router.get("", response_model=list[MatchOut])
async def list_matches(
    weekday: Optional[str] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    player: Optional[str] = None,
    other_player: Optional[str] = Query(None, alias="otherPlayer"),
    score_a: Optional[int] = Query(None, alias="scoreA", ge=0),
    score_b: Optional[int] = Query(None, alias="scoreB", ge=0),
    session: AsyncSession = Depends(get_session),
):
    criteria = _history_filter(weekday, on_date, player, other_player, score_a, score_b)
    snapshot = await store.load_snapshot(session)
    names = {p.id: p.name for p in snapshot.players}
    return [
        match_out(m, names)
        for m in filter_matches(snapshot.matches, snapshot.players, criteria)
    ]


@router.get("/next-sequence", response_model=NextSequenceOut)
async def next_sequence(session: AsyncSession = Depends(get_session)):
    snapshot = await store.load_snapshot(session)
    return NextSequenceOut(sequenceNumber=next_sequence_number(snapshot.matches))


@router.get("/export.csv")
async def export_matches(
    weekday: Optional[str] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    player: Optional[str] = None,
    other_player: Optional[str] = Query(None, alias="otherPlayer"),
    score_a: Optional[int] = Query(None, alias="scoreA", ge=0),
    score_b: Optional[int] = Query(None, alias="scoreB", ge=0),
    session: AsyncSession = Depends(get_session),
):
    criteria = _history_filter(weekday, on_date, player, other_player, score_a, score_b)
    snapshot = await store.load_snapshot(session)
    rows = filter_matches(snapshot.matches, snapshot.players, criteria)
    filename = f"match_history_{date.today().isoformat()}.csv"
    return Response(
        content=export_csv(rows, snapshot.players),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=MatchIdOut)
async def create_match(
    body: MatchCreate,
    session: AsyncSession = Depends(get_session),
):
    settings = get_settings()
    snapshot = await store.load_snapshot(session)
    seq = body.sequenceNumber or next_sequence_number(snapshot.matches)
    match = domain.Match(
        id=uuid.uuid4().hex,
        sequence=domain.Assigned(seq),
        date=body.date,
        team_a=domain.TeamResult(
            players=tuple(body.teamA.playerIds), score=body.teamA.score
        ),
        team_b=domain.TeamResult(
            players=tuple(body.teamB.playerIds), score=body.teamB.score
        ),
    )
    try:
        validate_match(match, snapshot.player_ids(), max_score=settings.max_match_score)
    except ValidationError as exc:
        raise http_problem(status_code=422, detail=exc.detail, code="invalid_match")

    merged = merge_into_snapshot(snapshot, [match])
    await store.save_merge(session, snapshot, merged)
    return MatchIdOut(id=match.id, sequenceNumber=seq)


@router.post("/import", response_model=ImportOut)
async def import_matches(
    body: ImportIn,
    session: AsyncSession = Depends(get_session),
):
    settings = get_settings()
    snapshot = await store.load_snapshot(session)
    rows = [
        ImportRow(
            date=r.date,
            team_a=(r.player1, r.player2),
            score_a=r.scoreA,
            team_b=(r.player3, r.player4),
            score_b=r.scoreB,
        )
        for r in body.rows
    ]
    resolution = resolve_import_rows(
        rows, snapshot.players, max_score=settings.max_match_score
    )
    if resolution.pending_names:
        await store.record_pending(session, resolution.pending_names)

    repeated = find_repeated_matches(snapshot.matches, resolution.matches)
    added: list[domain.Match] = []
    if resolution.matches:
        merged = merge_into_snapshot(snapshot, resolution.matches)
        added = await store.save_merge(session, snapshot, merged)

    return ImportOut(
        imported=len(added),
        matchIds=[m.id for m in resolution.matches],
        skippedRows=list(resolution.skipped_rows),
        rejected=[
            RejectedRowOut(row=r.index, detail=r.detail) for r in resolution.rejected
        ],
        pendingPlayers=list(resolution.pending_names),
        possibleDuplicates=[m.id for m in repeated],
    )


@router.get("/{mid}", response_model=MatchOut)
async def get_match(mid: str, session: AsyncSession = Depends(get_session)):
    snapshot = await store.load_snapshot(session)
    match = next((m for m in snapshot.matches if m.id == mid), None)
    if match is None:
        raise http_problem(status_code=404, detail="match not found", code="match_not_found")
    return match_out(match, {p.id: p.name for p in snapshot.players})
