from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from spinapp.actions import Action, Notify, SendToWinner, Winner
from spinapp.announcement import UpcomingRaffleAnnouncement
from spinapp.chat import ChatMessage, LatestChatMessages
from spinapp.nano import InvalidAccount, format_balance, normalize_account
from spinapp.participants import Participant, ParticipantRegistry
from spinapp.raffle_runner import RaffleResult, RaffleRunner


log = logging.getLogger(__name__)

# The spinner counts as connected if it polled within this many seconds.
SPINNER_LIVENESS = 3.0


@dataclass(frozen=True)
class Waiting:
    pass


@dataclass(frozen=True)
class Spinning:
    """A winner was drawn; the display is animating it."""

    result: RaffleResult


@dataclass(frozen=True)
class Confirming:
    """The display finished; payout goes out on the next tick."""

    result: RaffleResult


SpinState = Union[Waiting, Spinning, Confirming]

WAITING = Waiting()


class RaffleLogic:
    """Raffle state machine.

    Nothing here does I/O: ``tick`` returns actions for the caller to
    execute. Callers serialize access (see ``spinapp.state``).
    """

    def __init__(self, runner: RaffleRunner | None = None) -> None:
        self._runner = runner or RaffleRunner()
        self._registry = ParticipantRegistry()
        self._latest_messages = LatestChatMessages()
        self._announcement = UpcomingRaffleAnnouncement()
        self._running = False
        self._spin: SpinState = WAITING
        self._winners: list[str] = []
        self._last_ping: float | None = None

    # --- control -----------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True

    def stop(self) -> None:
        self._running = False
        # a restart begins a fresh cycle
        self._runner.reset()
        self._announcement.raffle_completed()

    @property
    def prize(self) -> int:
        return self._runner.prize

    def set_prize(self, prize: int) -> None:
        self._runner.set_prize(prize)

    @property
    def raffle_interval(self) -> float:
        return self._runner.interval

    def set_raffle_interval(self, interval: float) -> None:
        self._runner.set_interval(interval)

    def run_raffle_now(self, now: float) -> None:
        self._runner.run_raffle_now(now)

    def countdown(self, now: float) -> float:
        if not self._running:
            return 0.0
        return max(self._runner.next_raffle(now) - now, 0.0)

    # --- chat --------------------------------------------------------

    def handle_chat_message(self, message: ChatMessage) -> None:
        for word in message.message.split():
            try:
                account = normalize_account(word)
            except InvalidAccount:
                continue
            self._registry.add(
                Participant(
                    channel_id=message.author_channel_id,
                    name=message.display_name(),
                    account=account,
                )
            )
        self._latest_messages.add(message)

    def latest_messages(self) -> list[ChatMessage]:
        return list(self._latest_messages)

    def participants(self) -> list[Participant]:
        return self._registry.list()

    def add_participants(self, participants: Iterable[Participant]) -> None:
        for p in participants:
            self._registry.add(p)

    def winners(self) -> list[str]:
        return list(self._winners)

    # --- spinner handshake ------------------------------------------

    @property
    def spin_state(self) -> SpinState:
        return self._spin

    def current_win(self) -> RaffleResult | None:
        if isinstance(self._spin, Spinning):
            return self._spin.result
        return None

    def spin_finished(self) -> None:
        if isinstance(self._spin, Spinning):
            self._spin = Confirming(self._spin.result)

    def ping(self, now: float) -> None:
        self._last_ping = now

    def spinner_connected(self, now: float) -> bool:
        if self._last_ping is None:
            return False
        return now - self._last_ping <= SPINNER_LIVENESS

    # --- tick --------------------------------------------------------

    def tick(self, now: float, seed: int) -> list[Action]:
        if not self._running:
            return []

        actions: list[Action] = []

        # Settle a confirmed win before drawing, so a draw that falls on
        # the same tick cannot replace it.
        if isinstance(self._spin, Confirming):
            actions.extend(self._pay_out(self._spin.result))
            self._spin = WAITING

        due = self._runner.next_raffle(now)
        result = self._runner.try_run_raffle(self._registry, now, seed)
        if self._runner.next_raffle(now) != due:
            self._announcement.raffle_completed()
        if result is not None:
            if isinstance(self._spin, Spinning):
                log.warning("replacing unconfirmed win of %s", self._spin.result.winner)
            log.info("drew %s out of %d participants", result.winner, len(result.participants))
            self._spin = Spinning(result)

        # A cycle shorter than the notice period gets no notice.
        if self._runner.interval > self._announcement.offset:
            actions.extend(self._announcement.tick(self._runner.next_raffle(now), now))
        return actions

    def _pay_out(self, result: RaffleResult) -> list[Action]:
        self._winners.append(result.winner)
        return [
            Notify(f"Congratulations {result.winner}! You've just won Ӿ {format_balance(result.prize)}"),
            SendToWinner(Winner(name=result.winner, prize=result.prize, account=result.destination)),
        ]
