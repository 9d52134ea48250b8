from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from spinapp.logic import RaffleLogic


class SharedRaffle:
    """The one RaffleLogic of the process, behind one lock.

    Every entry point (tick loop, chat adapters, HTTP handlers) mutates
    the logic inside ``locked()`` and does its I/O after leaving it.
    Never ``await`` inside the block.
    """

    def __init__(self, logic: RaffleLogic | None = None) -> None:
        self._logic = logic or RaffleLogic()
        self._lock = threading.Lock()

    @contextmanager
    def locked(self) -> Iterator[RaffleLogic]:
        with self._lock:
            yield self._logic
