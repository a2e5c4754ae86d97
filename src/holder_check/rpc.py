from __future__ import annotations

import asyncio
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

import base58
import httpx

from .errors import RpcError, RpcTimeout
from .project_constants import DEFAULT_COMMITMENT, QUERY_TIMEOUT_S


class TokenAccountSource(Protocol):
    async def get_parsed_token_accounts_by_owner(
        self, owner: str, mint: str
    ) -> List[Dict[str, Any]]: ...

    async def aclose(self) -> None: ...


Connector = Callable[[str, str], TokenAccountSource]


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        commitment: str = DEFAULT_COMMITMENT,
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            err = data["error"]
            if isinstance(err, dict):
                raise RpcError(f"RPC error {err.get('code')}: {err.get('message')}")
            raise RpcError(f"RPC error: {err}")
        return data

    async def get_parsed_token_accounts_by_owner(
        self, owner: str, mint: str
    ) -> List[Dict[str, Any]]:
        """
        Returns the jsonParsed token accounts `owner` holds for `mint`.
        Only the mint filter is used (the RPC accepts mint OR programId, not both).
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getTokenAccountsByOwner",
            "params": [
                owner,
                {"mint": mint},
                {"encoding": "jsonParsed", "commitment": self.commitment},
            ],
        }
        data = await self._post(payload)
        result = data.get("result") or {}
        value = result.get("value") if isinstance(result, dict) else None
        return value if isinstance(value, list) else []


def connect(rpc_url: str, commitment: str) -> TokenAccountSource:
    return RpcClient(rpc_url, commitment=commitment)


def is_public_key(value: str) -> bool:
    try:
        return len(base58.b58decode(value)) == 32
    except ValueError:
        return False


def _ui_amount(account: Dict[str, Any]) -> float:
    try:
        ui = account["account"]["data"]["parsed"]["info"]["tokenAmount"]["uiAmount"]
    except (KeyError, TypeError):
        return 0.0
    if ui is None or isinstance(ui, bool):
        return 0.0
    try:
        amount = float(ui)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def sum_ui_amounts(accounts: Iterable[Dict[str, Any]]) -> float:
    return sum((_ui_amount(a) for a in accounts), 0.0)


async def query_balance(
    source: TokenAccountSource,
    owner: str,
    mint: str,
    timeout_s: float = QUERY_TIMEOUT_S,
) -> float:
    if not is_public_key(mint):
        raise RpcError(f"Invalid mint address: {mint}")
    try:
        accounts = await asyncio.wait_for(
            source.get_parsed_token_accounts_by_owner(owner, mint), timeout_s
        )
    except asyncio.TimeoutError:
        raise RpcTimeout(f"rpc-timeout after {timeout_s}s")
    return sum_ui_amounts(accounts or [])
