from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..domain import snapshot_to_records
from ..schemas import LedgerOut
from ..services import store

router = APIRouter(prefix="/ledger", tags=["ledger"])


# GET /api/v0/ledger -> the full saved state, loadable by seed.py
@router.get("", response_model=LedgerOut)
async def ledger(session: AsyncSession = Depends(get_session)):
    snapshot = await store.load_snapshot(session)
    records = snapshot_to_records(snapshot)
    return LedgerOut(
        version=snapshot.version,
        players=records["players"],
        matches=records["matches"],
    )
