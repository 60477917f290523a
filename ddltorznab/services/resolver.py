import asyncio
from enum import Enum
from loguru import logger
from pydantic import BaseModel, computed_field
from typing import List, Optional
from ddltorznab.core.config import settings
from ddltorznab.services.alldebrid import AllDebridService
from ddltorznab.services.availability import HostAvailabilityTracker
from ddltorznab.services.base import DebridClient, FallbackResolver
from ddltorznab.services.dlprotect import DlProtectService
from ddltorznab.utils.links import LinkParser

class ResolutionStatus(str, Enum):
    UNLOCKED = "unlocked"        # direct link from the debrid service
    RESOLVED = "resolved"        # protection removed, hoster link not debrided
    PASSTHROUGH = "passthrough"  # best effort: the (cleaned) input link

class LinkResolution(BaseModel):
    link: str
    original: str
    status: ResolutionStatus
    hops: int = 0

    @computed_field
    @property
    def resolved(self) -> bool:
        return self.status != ResolutionStatus.PASSTHROUGH

class LinkResolver:
    """
    Turns a link found by a scraper into the most usable link we can get.

    Order of attempts:
    1. Debrid not configured: protected links go to the browser resolver,
       anything else is returned cleaned.
    2. Protected link: AllDebrid redirector, following each newly revealed link
       (at most `max_hops` times). If the redirector makes no progress, the
       browser resolver takes over and its result is debrided when possible.
    3. Direct link: AllDebrid unlock.
    Whatever fails, the caller gets a link back, never an exception.
    """
    def __init__(
        self,
        debrid: DebridClient,
        fallback: FallbackResolver,
        max_hops: int = 5,
    ):
        self.debrid = debrid
        self.fallback = fallback
        self.max_hops = max_hops

    async def unlock_link(self, link: str, original_link: Optional[str] = None, hops: int = 0) -> LinkResolution:
        original = original_link or link
        cleaned = LinkParser.clean(original)

        if not self.debrid.is_configured:
            if self.fallback.is_protected(link):
                logger.info(f"[Resolver] Debrid not configured, using browser resolver for: {link}")
                resolved = await self._fallback_resolve(link)
                return self._result(resolved, original, hops, ResolutionStatus.RESOLVED)
            return self._result(cleaned, original, hops, ResolutionStatus.PASSTHROUGH)

        try:
            if LinkParser.is_protected(link):
                return await self._unlock_protected(link, original, cleaned, hops)

            unlocked = await self.debrid.unlock(link)
            if unlocked:
                return self._result(unlocked, original, hops, ResolutionStatus.UNLOCKED)

            logger.info(f"[Resolver] Debrid failed, returning original link: {cleaned}")
            return self._result(cleaned, original, hops, ResolutionStatus.PASSTHROUGH)
        except Exception:
            logger.exception(f"[Resolver] Unexpected error while unlocking {link}")
            if self.fallback.is_protected(link):
                logger.info(f"[Resolver] Using browser resolver after error for: {link}")
                resolved = await self._fallback_resolve(link)
                return self._result(resolved, original, hops, ResolutionStatus.RESOLVED)
            return self._result(cleaned, original, hops, ResolutionStatus.PASSTHROUGH)

    async def _unlock_protected(self, link: str, original: str, cleaned: str, hops: int) -> LinkResolution:
        candidates = await self.debrid.resolve_redirector(link)
        if candidates and candidates[0] and candidates[0] != link:
            if hops >= self.max_hops:
                logger.warning(f"[Resolver] Gave up on {original} after {hops} redirector hops")
                return self._result(cleaned, original, hops, ResolutionStatus.PASSTHROUGH)
            return await self.unlock_link(candidates[0], original, hops + 1)

        logger.info(f"[Resolver] Redirector failed, using browser resolver for: {link}")
        resolved = await self._fallback_resolve(link)
        if resolved and not self.fallback.is_protected(resolved):
            unlocked = await self.debrid.unlock(resolved)
            if unlocked:
                return self._result(unlocked, original, hops, ResolutionStatus.UNLOCKED)
            return self._result(resolved, original, hops, ResolutionStatus.RESOLVED)

        return self._result(cleaned, original, hops, ResolutionStatus.PASSTHROUGH)

    async def _fallback_resolve(self, link: str) -> str:
        try:
            resolved = await self.fallback.resolve(link)
        except Exception:
            logger.exception(f"[Resolver] Browser resolver raised for {link}")
            return link
        return resolved or link

    def _result(self, link: str, original: str, hops: int, status: ResolutionStatus) -> LinkResolution:
        # A link still behind the redirector is not a resolution, whatever produced it
        if status == ResolutionStatus.RESOLVED and LinkParser.is_protected(link):
            status = ResolutionStatus.PASSTHROUGH
        return LinkResolution(link=link, original=original, status=status, hops=hops)

    async def unlock_links(self, links: List[str]) -> List[LinkResolution]:
        results = await asyncio.gather(
            *(self.unlock_link(link) for link in links),
            return_exceptions=True,
        )

        resolutions = []
        for link, result in zip(links, results):
            if isinstance(result, BaseException):
                logger.opt(exception=result).error(f"[Resolver] Unlock failed for {link}")
                result = self._result(LinkParser.clean(link), link, 0, ResolutionStatus.PASSTHROUGH)
            resolutions.append(result)
        return resolutions

    async def unlock_url(self, link: str) -> str:
        return (await self.unlock_link(link)).link

    async def unlock_urls(self, links: List[str]) -> List[str]:
        return [resolution.link for resolution in await self.unlock_links(links)]

    async def aclose(self) -> None:
        await self.debrid.aclose()
        await self.fallback.close()

def build_link_resolver(
    api_key: Optional[str] = None,
    availability: Optional[HostAvailabilityTracker] = None,
) -> LinkResolver:
    """
    Wires the resolver from settings. The availability tracker lives as long as
    the returned resolver.
    """
    if availability is None:
        availability = HostAvailabilityTracker(ttl=settings.HOST_UNAVAILABLE_TTL)
    debrid = AllDebridService(
        api_key=api_key or settings.ALLDEBRID_API_KEY,
        availability=availability,
    )
    return LinkResolver(
        debrid=debrid,
        fallback=DlProtectService(),
        max_hops=settings.MAX_REDIRECT_HOPS,
    )
