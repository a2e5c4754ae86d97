"""Shared test fixtures: fake RPC connections keyed by endpoint URL."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Tuple, Union

import pytest

from holder_check.endpoints import InMemoryEndpointMemory
from holder_check.store import InMemoryStore

OWNER = "So11111111111111111111111111111111111111112"
MINT_A = "9NrkmoqwF1rBjsfKZvn7ngCy6zqvb8A6A5RfTvR2pump"
MINT_B = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"


def token_account(ui_amount: Any) -> Dict[str, Any]:
    return {
        "pubkey": "acct",
        "account": {"data": {"parsed": {"info": {"tokenAmount": {"uiAmount": ui_amount}}}}},
    }


# per endpoint: exception to raise, or {mint: [ui amounts]}
Behaviour = Union[Exception, Dict[str, List[Any]]]


class FakeSource:
    def __init__(self, net: "FakeNetwork", url: str) -> None:
        self.net = net
        self.url = url

    async def get_parsed_token_accounts_by_owner(self, owner: str, mint: str) -> List[Dict[str, Any]]:
        self.net.queries.append((self.url, mint))
        behaviour = self.net.endpoints.get(self.url, {})
        if isinstance(behaviour, Exception):
            raise behaviour
        if self.net.delay_s:
            await asyncio.sleep(self.net.delay_s)
        return [token_account(a) for a in behaviour.get(mint, [])]

    async def aclose(self) -> None:
        self.net.closed.append(self.url)


class FakeNetwork:
    def __init__(self, endpoints: Dict[str, Behaviour] | None = None, delay_s: float = 0.0) -> None:
        self.endpoints: Dict[str, Behaviour] = dict(endpoints or {})
        self.delay_s = delay_s
        self.queries: List[Tuple[str, str]] = []
        self.closed: List[str] = []
        self.connected: List[Tuple[str, str]] = []

    def connect(self, url: str, commitment: str) -> FakeSource:
        self.connected.append((url, commitment))
        return FakeSource(self, url)

    @property
    def urls_tried(self) -> List[str]:
        return [u for u, _ in self.connected]


@pytest.fixture
def network() -> Callable[..., FakeNetwork]:
    return FakeNetwork


@pytest.fixture
def memory() -> InMemoryEndpointMemory:
    return InMemoryEndpointMemory()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
