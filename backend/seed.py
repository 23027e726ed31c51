"""Load a saved roster + match log (JSON) into an empty database.

Usage: ``DATABASE_URL=... python seed.py state.json``

The file holds ``{"players": [...], "matches": [...]}`` as written by
``GET /api/v0/ledger`` or by older exports that still use ``dayId`` and
``dob``. Matches without a sequence number get one, in file order.
"""

import argparse
import asyncio
import json
import logging
import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.db import normalize_database_url
from app.domain import Assigned, Snapshot, snapshot_from_records
from app.services import merge_matches, validate_batch
from app.services import store

logger = logging.getLogger("seed")


def load_state(path: str) -> Snapshot:
    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)
    saved = snapshot_from_records(records)
    validate_batch(saved.matches, saved.player_ids())
    numbered = [m for m in saved.matches if isinstance(m.sequence, Assigned)]
    unnumbered = [m for m in saved.matches if not isinstance(m.sequence, Assigned)]
    return Snapshot(players=saved.players, matches=merge_matches(numbered, unnumbered))


async def main(path: str) -> None:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is required")

    snapshot = load_state(path)
    engine = create_async_engine(normalize_database_url(database_url), echo=False)
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        await store.import_snapshot(session, snapshot)
    await engine.dispose()
    logger.info(
        "Seeded %d player(s) and %d match(es)",
        len(snapshot.players),
        len(snapshot.matches),
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("path", help="JSON state file")
    asyncio.run(main(parser.parse_args().path))
