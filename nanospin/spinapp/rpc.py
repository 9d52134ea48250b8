from __future__ import annotations

from dataclasses import dataclass

import httpx


class RpcError(Exception):
    """Node unreachable, bad response, or an ``error`` field in the reply."""


@dataclass(frozen=True)
class AccountInfo:
    frontier: bytes
    balance: int
    representative: str | None


class NanoRpcClient:
    """Minimal JSON-RPC client for a Nano node.

    Pass ``transport`` to swap the network (tests use httpx.MockTransport).
    """

    def __init__(self, url: str, timeout: float = 10, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def _call(self, action: str, **params) -> dict:
        payload = {"action": action, **params}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.url, json=payload)
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RpcError(f"{action}: {e}") from e
        except ValueError as e:
            raise RpcError(f"{action}: response is not JSON") from e

        if not isinstance(data, dict):
            raise RpcError(f"{action}: unexpected response {data!r}")
        if "error" in data:
            raise RpcError(f"{action}: {data['error']}")
        return data

    async def account_info(self, account: str) -> AccountInfo:
        data = await self._call("account_info", account=account, representative="true")
        try:
            frontier = bytes.fromhex(data["frontier"])
            balance = int(data["balance"])
        except (KeyError, ValueError, TypeError) as e:
            raise RpcError(f"account_info: malformed response: {e}") from e
        if len(frontier) != 32:
            raise RpcError("account_info: frontier is not 32 bytes")
        representative = data.get("representative")
        if representative is not None and not isinstance(representative, str):
            raise RpcError(f"account_info: malformed representative {representative!r}")
        return AccountInfo(frontier=frontier, balance=balance, representative=representative or None)

    async def process(self, block: dict, subtype: str = "send") -> str:
        """Publish a block; returns its hash."""
        data = await self._call("process", json_block="true", subtype=subtype, block=block)
        block_hash = data.get("hash")
        if not isinstance(block_hash, str) or not block_hash:
            raise RpcError(f"process: no block hash in response {data!r}")
        return block_hash

    async def work_generate(self, root: bytes) -> int:
        data = await self._call("work_generate", hash=root.hex().upper())
        try:
            return int(data["work"], 16)
        except (KeyError, ValueError, TypeError) as e:
            raise RpcError(f"work_generate: malformed response: {e}") from e
