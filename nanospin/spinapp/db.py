from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from spinapp import models
from spinapp.nano import is_valid_account
from spinapp.participants import Participant


log = logging.getLogger(__name__)


def create_engine_and_session(database_url: str) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(database_url, future=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    return engine, Session


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


class ParticipantsStore:
    """Persisted copy of the participant roster.

    ``update`` only writes when the roster differs from what was last
    loaded or saved. Storage errors are logged, never raised: the raffle
    keeps running without a snapshot.
    """

    def __init__(self, Session: async_sessionmaker[AsyncSession]) -> None:
        self.Session = Session
        self._last_saved: frozenset[Participant] = frozenset()

    async def load(self) -> list[Participant]:
        try:
            async with self.Session() as s:
                rows = (await s.scalars(select(models.StoredParticipant))).all()
        except SQLAlchemyError as e:
            log.warning("could not read participants: %s", e)
            return []

        participants = []
        for r in rows:
            if not is_valid_account(r.account):
                log.warning("skipping stored participant %s with bad account", r.channel_id)
                continue
            participants.append(Participant(channel_id=r.channel_id, name=r.name, account=r.account))
        self._last_saved = frozenset(participants)
        return participants

    async def update(self, participants: list[Participant]) -> bool:
        """Save the roster if it changed. Returns True when written."""
        current = frozenset(participants)
        if current == self._last_saved:
            return False

        try:
            async with self.Session() as s:
                await s.execute(delete(models.StoredParticipant))
                s.add_all(
                    models.StoredParticipant(channel_id=p.channel_id, name=p.name, account=p.account)
                    for p in participants
                )
                await s.commit()
        except SQLAlchemyError as e:
            log.warning("could not save participants: %s", e)
            return False

        self._last_saved = current
        log.info("participants snapshot written (%d)", len(participants))
        return True
