from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

from spinapp.nano import (
    InvalidAccount,
    StateBlock,
    decode_account,
    encode_account,
    public_key_from_private,
    sign_state_block,
)
from spinapp.rpc import NanoRpcClient, RpcError
from spinapp.work import WorkGenerator


log = logging.getLogger(__name__)

# Payout never completes faster than this after PoW starts, so its timing
# says nothing about the hardware doing the work.
MIN_SEND_DURATION = 15.0


class PrizeSendError(Exception):
    pass


class PrizeSender:
    def __init__(
        self,
        private_key: bytes,
        rpc: NanoRpcClient,
        work: WorkGenerator,
        min_duration: float = MIN_SEND_DURATION,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._private_key = private_key
        self.public_key = public_key_from_private(private_key)
        self.account = encode_account(self.public_key)
        self.rpc = rpc
        self.work = work
        self.min_duration = min_duration
        self._sleep = sleep
        self._clock = clock
        # One payout at a time: each send builds on the frontier of the last.
        self._lock = asyncio.Lock()

    async def send_prize(self, destination: str, amount: int) -> str:
        """Pay ``amount`` raw to ``destination``; returns the block hash.

        Raises PrizeSendError on any failure. Nothing is retried.
        """
        async with self._lock:
            try:
                return await self._send(destination, amount)
            except (RpcError, InvalidAccount) as e:
                raise PrizeSendError(str(e)) from e

    async def _send(self, destination: str, amount: int) -> str:
        link = decode_account(destination)
        info = await self.rpc.account_info(self.account)
        if info.representative is None:
            raise PrizeSendError("account_info returned no representative")
        representative = decode_account(info.representative)
        if info.balance < amount:
            raise PrizeSendError(f"balance {info.balance} is below prize {amount}")

        started = self._clock()
        work = await self.work.generate(info.frontier)
        remaining = self.min_duration - (self._clock() - started)
        if remaining > 0:
            await self._sleep(remaining)

        block = sign_state_block(
            StateBlock(
                account=self.public_key,
                previous=info.frontier,
                representative=representative,
                balance=info.balance - amount,
                link=link,
                work=work,
            ),
            self._private_key,
        )
        block_hash = await self.rpc.process(block.json_representation(), subtype="send")
        log.info("send block %s published", block_hash)
        return block_hash
