from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Participant:
    channel_id: str
    name: str
    # canonical nano_ address
    account: str


class ParticipantRegistry:
    """Entrants keyed by chat identity; the last seen address wins."""

    def __init__(self) -> None:
        self._by_channel: dict[str, Participant] = {}

    def add(self, participant: Participant) -> None:
        self._by_channel[participant.channel_id] = participant

    def __len__(self) -> int:
        return len(self._by_channel)

    def list(self) -> list[Participant]:
        # Sorted by channel_id: pick_random indexes into this order.
        return sorted(self._by_channel.values(), key=lambda p: p.channel_id)

    def pick_random(self, seed: int) -> Participant | None:
        if not self._by_channel:
            return None
        participants = self.list()
        return participants[seed % len(participants)]
