from __future__ import annotations

import asyncio
import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from spinapp.nano import SEND_WORK_THRESHOLD, work_value
from spinapp.rpc import NanoRpcClient


log = logging.getLogger(__name__)


class WorkGenerator(Protocol):
    async def generate(self, root: bytes) -> int:
        ...


class RpcWorkGenerator:
    """Ask the node (or a work server speaking the same RPC) for PoW."""

    def __init__(self, client: NanoRpcClient) -> None:
        self.client = client

    async def generate(self, root: bytes) -> int:
        log.info("requesting PoW from %s", self.client.url)
        work = await self.client.work_generate(root)
        log.info("PoW generation finished")
        return work


def search_work(root: bytes, threshold: int = SEND_WORK_THRESHOLD, start: int | None = None) -> int:
    """Brute-force a nonce whose work value reaches ``threshold``.

    Slow in pure Python at the real send threshold; meant for test
    networks and low thresholds.
    """
    nonce = secrets.randbits(64) if start is None else start
    while work_value(nonce, root) < threshold:
        nonce = (nonce + 1) & 0xFFFFFFFFFFFFFFFF
    return nonce


class LocalWorkGenerator:
    """CPU PoW in a dedicated worker thread, off the event loop."""

    def __init__(self, threshold: int = SEND_WORK_THRESHOLD) -> None:
        self.threshold = threshold
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pow")

    async def generate(self, root: bytes) -> int:
        log.info("starting local PoW generation")
        loop = asyncio.get_running_loop()
        work = await loop.run_in_executor(self._executor, search_work, root, self.threshold)
        log.info("PoW generation finished")
        return work

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
