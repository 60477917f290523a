import httpx
from async_lru import alru_cache
from loguru import logger
from typing import Any, Dict, List, Optional
from ddltorznab.core.config import settings
from ddltorznab.services.availability import HostAvailabilityTracker
from ddltorznab.services.base import DebridClient
from ddltorznab.utils.links import LinkParser

# Error codes meaning the hoster itself is temporarily unusable through AllDebrid.
# Anything else (auth, rate limit, bad link...) only concerns the current link.
HOST_UNAVAILABLE_CODES = frozenset({
    "LINK_HOST_NOT_SUPPORTED",
    "LINK_HOST_UNAVAILABLE",
    "LINK_HOST_FULL",
    "LINK_HOST_LIMIT_REACHED",
})

class AllDebridService(DebridClient):
    """
    Client for AllDebrid API.
    Docs: https://docs.alldebrid.com/
    """
    def __init__(
        self,
        api_key: Optional[str] = None,
        availability: Optional[HostAvailabilityTracker] = None,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or None
        self.base_url = (base_url or settings.ALLDEBRID_API_URL).rstrip("/")
        if availability is None:
            availability = HostAvailabilityTracker(ttl=settings.HOST_UNAVAILABLE_TTL)
        self.availability = availability
        self.client = client or httpx.AsyncClient(timeout=settings.ALLDEBRID_TIMEOUT)

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    def _get_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def _post(self, endpoint: str, link: str) -> Dict[str, Any]:
        # Error envelopes may come with a non-2xx status
        resp = await self.client.post(
            f"{self.base_url}{endpoint}",
            data={"link": link},
            headers=self._get_headers(),
        )
        try:
            payload = resp.json()
        except ValueError:
            resp.raise_for_status()
            raise
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected AllDebrid payload: {payload!r}")
        if payload.get("status") != "error":
            resp.raise_for_status()
        return payload

    async def resolve_redirector(self, link: str) -> List[str]:
        if not self.api_key:
            return [link]

        try:
            payload = await self._post("/link/redirector", link)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[AllDebrid] Redirector request failed for {link}: {e!r}")
            return [link]

        data = payload.get("data") or {}
        links = data.get("links") if isinstance(data, dict) else None
        if not isinstance(links, list):
            links = None
        if payload.get("status") == "success" and links:
            logger.info(f"[AllDebrid] Redirector resolved {link} to {len(links)} links")
            return [str(candidate) for candidate in links]

        error = payload.get("error")
        if not isinstance(error, dict):
            error = {}
        if error:
            logger.warning(f"[AllDebrid] Redirector error for {link}: {error.get('message')} ({error.get('code')})")
        else:
            logger.warning(f"[AllDebrid] Redirector returned no links for {link}")
        return [link]

    async def unlock(self, link: str) -> Optional[str]:
        if not self.api_key:
            return None

        host = LinkParser.get_host(link)
        if host and self.availability.is_unavailable(host):
            logger.info(f"[AllDebrid] Skipping {link} - host {host} is temporarily unavailable")
            return None

        try:
            payload = await self._post("/link/unlock", link)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[AllDebrid] Unlock request failed for {link} (host {host}): {e!r}")
            return None

        data = payload.get("data") or {}
        if payload.get("status") == "success" and isinstance(data, dict) and data.get("link"):
            logger.info(f"[AllDebrid] Unlocked {link} ({data.get('filename') or 'unknown file'})")
            return data["link"]

        error = payload.get("error")
        if not isinstance(error, dict):
            error = {}
        code = error.get("code")
        if code:
            logger.warning(f"[AllDebrid] Debrid error for {link}: {error.get('message')} ({code})")
            if host and code in HOST_UNAVAILABLE_CODES:
                self.availability.mark_unavailable(host)
        else:
            logger.warning(f"[AllDebrid] Unlock returned no link for {link}")
        return None

    @alru_cache(maxsize=1, ttl=300)
    async def check_status(self) -> bool:
        """
        True when the configured account is premium.
        """
        if not self.api_key:
            return False

        try:
            resp = await self.client.get(f"{self.base_url}/user", headers=self._get_headers())
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[AllDebrid] Status check failed: {e!r}")
            return False

        data = payload.get("data") if isinstance(payload, dict) else None
        user = data.get("user") if isinstance(data, dict) else None
        if not isinstance(user, dict):
            return False
        return payload.get("status") == "success" and user.get("isPremium") is True

    async def aclose(self) -> None:
        await self.client.aclose()
