from __future__ import annotations

from dataclasses import dataclass

from spinapp.nano import RAW_PER_NANO
from spinapp.participants import ParticipantRegistry


DEFAULT_INTERVAL = 5 * 60.0
# 0.01 Nano
DEFAULT_PRIZE = RAW_PER_NANO // 100


@dataclass(frozen=True)
class RaffleResult:
    """Outcome of one draw, frozen at draw time."""

    winner: str
    # names in channel_id order, as the registry listed them
    participants: tuple[str, ...]
    prize: int
    destination: str
    # position of the winner in participants; names are not unique
    winner_index: int = 0


class RaffleRunner:
    def __init__(self, interval: float = DEFAULT_INTERVAL, prize: int = DEFAULT_PRIZE) -> None:
        self._next_raffle: float | None = None
        self._interval = interval
        self._prize = prize

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def prize(self) -> int:
        return self._prize

    def set_interval(self, interval: float) -> None:
        # Only used when the schedule is advanced next.
        self._interval = interval

    def set_prize(self, prize: int) -> None:
        self._prize = prize

    def next_raffle(self, now: float) -> float:
        if self._next_raffle is None:
            self._next_raffle = now + self._interval
        return self._next_raffle

    def run_raffle_now(self, now: float) -> None:
        self._next_raffle = now

    def reset(self) -> None:
        self._next_raffle = None

    def try_run_raffle(self, registry: ParticipantRegistry, now: float, seed: int) -> RaffleResult | None:
        """Draw a winner if the raffle is due.

        A due raffle always moves the schedule forward by one interval,
        even when nobody is registered.
        """
        due = self.next_raffle(now)
        if now < due:
            return None

        winner = registry.pick_random(seed)
        roster = registry.list()

        following = due + self._interval
        if following <= now:
            following = now + self._interval
        self._next_raffle = following

        if winner is None:
            return None
        return RaffleResult(
            winner=winner.name,
            participants=tuple(p.name for p in roster),
            prize=self._prize,
            destination=winner.account,
            winner_index=roster.index(winner),
        )
