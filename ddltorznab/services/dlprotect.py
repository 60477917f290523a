import asyncio
import httpx
from loguru import logger
from typing import Optional
from ddltorznab.core.config import settings
from ddltorznab.services.base import CacheStats
from ddltorznab.utils.links import LinkParser

class DlProtectService:
    """
    Client for the browser-automation dl-protect resolver service.
    The service opens the interstitial page in a real browser, solves it and
    returns the hoster link hidden behind it. It keeps its own results cache.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        use_cache: Optional[bool] = None,
        max_concurrency: Optional[int] = None,
    ):
        url = settings.DLPROTECT_SERVICE_URL if base_url is None else base_url
        self.base_url = url.rstrip("/") or None
        self.use_cache = not settings.DISABLE_REMOTE_DL_PROTECT_CACHE if use_cache is None else use_cache
        self.client = client or httpx.AsyncClient(timeout=settings.DLPROTECT_TIMEOUT)
        # Caps concurrent browser sessions on the service side
        self._slots = asyncio.Semaphore(max_concurrency or settings.DLPROTECT_MAX_CONCURRENCY)

    @property
    def is_configured(self) -> bool:
        return self.base_url is not None

    def is_protected(self, link: str) -> bool:
        return LinkParser.is_protected(link)

    async def resolve(self, link: str) -> str:
        if not self.base_url:
            logger.warning(f"[DL-Protect] Service not configured, cannot resolve {link}")
            return link

        try:
            async with self._slots:
                resp = await self.client.post(
                    f"{self.base_url}/resolve",
                    json={"url": link, "use_cache": self.use_cache},
                )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[DL-Protect] Resolve request failed for {link}: {e!r}")
            return link

        if not isinstance(data, dict):
            logger.error(f"[DL-Protect] Unexpected response for {link}: {data!r}")
            return link

        resolved = data.get("resolved_url")
        if data.get("success") and isinstance(resolved, str) and resolved:
            source = "cache" if data.get("cached") else "browser"
            logger.info(f"[DL-Protect] Resolved {link} -> {resolved} ({source})")
            return resolved

        logger.warning(f"[DL-Protect] Could not resolve {link}: {data.get('error') or 'no link returned'}")
        return link

    async def get_cache_stats(self) -> Optional[CacheStats]:
        if not self.base_url:
            return None

        try:
            resp = await self.client.get(f"{self.base_url}/cache/stats")
            resp.raise_for_status()
            return CacheStats.model_validate(resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[DL-Protect] Cache stats unavailable: {e!r}")
            return None

    async def close(self) -> None:
        await self.client.aclose()
        logger.info("[DL-Protect] Client closed")
