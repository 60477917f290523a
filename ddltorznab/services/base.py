from abc import ABC, abstractmethod
from typing import List, Optional, Protocol
from pydantic import BaseModel

class DebridClient(ABC):
    """
    Abstract Base Class for Debrid Providers (AllDebrid, etc.)

    Adapters never raise to their callers: transport and API failures are
    logged and reported as "no result" (None, or the unresolved input link).
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when no credential is set; every call is then a no-op."""
        pass

    @abstractmethod
    async def unlock(self, link: str) -> Optional[str]:
        """
        Unlocks a hoster link into a direct download link.
        Returns None if the service cannot unlock it (caller uses its fallback).
        """
        pass

    @abstractmethod
    async def resolve_redirector(self, link: str) -> List[str]:
        """
        Expands a protected (redirector) link into candidate hoster links.
        Returns [link] when nothing could be resolved.
        """
        pass

    async def check_status(self) -> bool:
        return False

    async def aclose(self) -> None:
        pass

class CacheStats(BaseModel):
    entries: int
    directory: Optional[str] = None

class FallbackResolver(Protocol):
    async def resolve(self, link: str) -> str:
        """
        Resolves a protected link with a real browser.
        Never raises; worst case returns the input link.
        """
        ...

    def is_protected(self, link: str) -> bool:
        ...

    async def get_cache_stats(self) -> Optional[CacheStats]:
        ...

    async def close(self) -> None:
        """Teardown hook, called once at shutdown."""
        ...
