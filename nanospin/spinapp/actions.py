from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Winner:
    name: str
    prize: int
    account: str


@dataclass(frozen=True)
class Notify:
    """Message to show to the audience (chat / desktop)."""

    message: str


@dataclass(frozen=True)
class SendToWinner:
    """Pay ``winner.prize`` raw to ``winner.account``."""

    winner: Winner


Action = Union[Notify, SendToWinner]
