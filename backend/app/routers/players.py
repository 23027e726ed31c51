from datetime import date

from fastapi import APIRouter, Depends, Response, Query
from sqlalchemy.ext.asyncio import AsyncSession

from .. import domain
from ..db import get_session
from ..exceptions import DeletionNotConfirmed, PlayerNotFound, ProblemDetail
from ..schemas import (
    PendingPlayersOut,
    PlayerCreate,
    PlayerListOut,
    PlayerOut,
    PlayerUpdate,
)
from ..services import matches_involving, remove_player
from ..services import store
from ..services.ranking import collation_key

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def player_out(player: domain.Player, today: date | None = None) -> PlayerOut:
    return PlayerOut(
        id=player.id,
        name=player.name,
        dateOfBirth=player.date_of_birth,
        age=player.age_on(today or date.today()),
    )


@router.post("", response_model=PlayerOut)
async def create_player(
    body: PlayerCreate,
    session: AsyncSession = Depends(get_session),
):
    player = await store.add_player(session, body.name, body.dateOfBirth)
    return player_out(player)


# GET /api/v0/players?q=ana
@router.get("", response_model=PlayerListOut)
async def list_players(
    q: str = "",
    session: AsyncSession = Depends(get_session),
):
    snapshot = await store.load_snapshot(session)
    players = sorted(snapshot.players, key=lambda p: (collation_key(p.name), p.id))
    if q:
        needle = collation_key(q)
        players = [p for p in players if needle in collation_key(p.name)]
    return PlayerListOut(players=[player_out(p) for p in players], total=len(players))


@router.get("/pending", response_model=PendingPlayersOut)
async def pending_players(session: AsyncSession = Depends(get_session)):
    return PendingPlayersOut(names=await store.list_pending(session))


@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(player_id: str, session: AsyncSession = Depends(get_session)):
    snapshot = await store.load_snapshot(session)
    player = snapshot.players_by_id().get(player_id)
    if player is None:
        raise PlayerNotFound(player_id)
    return player_out(player)


@router.put("/{player_id}", response_model=PlayerOut)
async def update_player(
    player_id: str,
    body: PlayerUpdate,
    session: AsyncSession = Depends(get_session),
):
    player = await store.update_player(session, player_id, body.name, body.dateOfBirth)
    return player_out(player)


@router.delete("/{player_id}", status_code=204)
async def delete_player(
    player_id: str,
    confirm: bool = Query(False, description="Acknowledge that the player's matches are deleted too"),
    session: AsyncSession = Depends(get_session),
):
    snapshot = await store.load_snapshot(session)
    if player_id not in snapshot.player_ids():
        raise PlayerNotFound(player_id)
    if not confirm:
        raise DeletionNotConfirmed(
            player_id, len(matches_involving(player_id, snapshot.matches))
        )

    removal = remove_player(snapshot, player_id)
    await store.save_removal(session, snapshot, removal)
    return Response(status_code=204)
