from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Callable, Protocol

from spinapp.actions import Action, Notify, SendToWinner, Winner
from spinapp.db import ParticipantsStore
from spinapp.prize_sender import PrizeSendError, PrizeSender
from spinapp.state import SharedRaffle
from spinapp.time_utils import now as monotonic_now


log = logging.getLogger(__name__)

TICK_INTERVAL = 1.0


class Notifier(Protocol):
    async def notify(self, text: str) -> None:
        ...


class LogNotifier:
    async def notify(self, text: str) -> None:
        log.info("notification: %s", text)


class Backend:
    """Drives the raffle: ticks the logic and carries out its actions."""

    def __init__(
        self,
        shared: SharedRaffle,
        prize_sender: PrizeSender,
        notifiers: list[Notifier] | None = None,
        store: ParticipantsStore | None = None,
        clock: Callable[[], float] = monotonic_now,
        random_u32: Callable[[], int] = lambda: secrets.randbits(32),
    ) -> None:
        self.shared = shared
        self.prize_sender = prize_sender
        self.notifiers = notifiers if notifiers is not None else [LogNotifier()]
        self.store = store
        self.clock = clock
        self.random_u32 = random_u32
        # Payouts in flight; kept so the tasks are not garbage collected.
        self._payouts: set[asyncio.Task] = set()

    async def tick_once(self) -> list[Action]:
        with self.shared.locked() as logic:
            participants = logic.participants()
            actions = logic.tick(self.clock(), self.random_u32())

        if self.store is not None:
            await self.store.update(participants)

        for action in actions:
            await self.execute(action)
        return actions

    async def execute(self, action: Action) -> None:
        if isinstance(action, Notify):
            for n in self.notifiers:
                try:
                    await n.notify(action.message)
                except Exception:
                    # a failed notification must not hold back the payout that follows
                    log.exception("notifier %s failed", type(n).__name__)
        elif isinstance(action, SendToWinner):
            winner = action.winner
            log.info("We have a winner: %s with address %s", winner.name, winner.account)
            task = asyncio.create_task(self.pay(winner))
            self._payouts.add(task)
            task.add_done_callback(self._payouts.discard)

    async def pay(self, winner: Winner) -> bool:
        try:
            await self.prize_sender.send_prize(winner.account, winner.prize)
        except PrizeSendError as e:
            log.warning("Could not send prize to %s: %s", winner.name, e)
            return False
        log.info("Prize sent to %s!", winner.name)
        return True

    async def wait_for_payouts(self) -> None:
        if self._payouts:
            await asyncio.gather(*self._payouts, return_exceptions=True)

    async def run(self) -> None:
        while True:
            try:
                await self.tick_once()
            except Exception:
                # avoid crashing the loop
                log.exception("tick loop error")
            await asyncio.sleep(TICK_INTERVAL)
