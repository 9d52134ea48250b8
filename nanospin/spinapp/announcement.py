from __future__ import annotations

from spinapp.actions import Action, Notify


# Seconds before the raffle at which the "get ready" notice goes out.
ANNOUNCEMENT_OFFSET = 10.0


class UpcomingRaffleAnnouncement:
    def __init__(self, offset: float = ANNOUNCEMENT_OFFSET) -> None:
        self.offset = offset
        self.announcement_made = False

    def raffle_completed(self) -> None:
        self.announcement_made = False

    def tick(self, next_raffle: float, now: float) -> list[Action]:
        if self.announcement_made or now < next_raffle - self.offset:
            return []
        self.announcement_made = True
        return [Notify(f"Get ready! The next raffle starts in {int(self.offset)} seconds...")]
