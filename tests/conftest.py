"""Shared fakes for the resolver tests."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from ddltorznab.services.availability import HostAvailabilityTracker
from ddltorznab.services.base import CacheStats, DebridClient
from ddltorznab.utils.links import LinkParser


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDebrid(DebridClient):
    """In-memory debrid adapter recording every call."""

    def __init__(
        self,
        configured: bool = True,
        unlocked: Optional[Dict[str, str]] = None,
        redirects: Optional[Dict[str, List[str]]] = None,
        raise_on: Optional[set] = None,
    ) -> None:
        self.configured = configured
        self.unlocked = unlocked or {}
        self.redirects = redirects or {}
        self.raise_on = raise_on or set()
        self.unlock_calls: List[str] = []
        self.redirector_calls: List[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def unlock(self, link: str) -> Optional[str]:
        self.unlock_calls.append(link)
        if link in self.raise_on:
            raise RuntimeError(f"adapter blew up on {link}")
        return self.unlocked.get(link)

    async def resolve_redirector(self, link: str) -> List[str]:
        self.redirector_calls.append(link)
        if link in self.raise_on:
            raise RuntimeError(f"redirector blew up on {link}")
        return self.redirects.get(link, [link])


class FakeFallback:
    """Browser resolver double: returns mapped links, else the input."""

    def __init__(self, resolved: Optional[Dict[str, str]] = None, raises: bool = False) -> None:
        self.resolved = resolved or {}
        self.raises = raises
        self.calls: List[str] = []
        self.closed = False

    def is_protected(self, link: str) -> bool:
        return LinkParser.is_protected(link)

    async def resolve(self, link: str) -> str:
        self.calls.append(link)
        if self.raises:
            raise RuntimeError("browser crashed")
        return self.resolved.get(link, link)

    async def get_cache_stats(self) -> Optional[CacheStats]:
        return CacheStats(entries=3, directory="/cache")

    async def close(self) -> None:
        self.closed = True


def form_link(request: httpx.Request) -> str:
    return parse_qs(request.content.decode())["link"][0]


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> HostAvailabilityTracker:
    return HostAvailabilityTracker(ttl=15 * 60, clock=clock)
