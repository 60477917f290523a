from typing import Optional
from urllib.parse import urlsplit

# Redirector domains hiding the real hoster link behind an interstitial page
REDIRECTOR_DOMAINS = (
    "dl-protect.link",
    "dl-protect.net",
    "dl-protect.org",
)

class LinkParser:
    @staticmethod
    def get_host(link: str) -> Optional[str]:
        """
        Normalized hostname of a link (lower-cased, leading "www." removed).
        Returns None when the link has no parseable host.
        """
        try:
            hostname = urlsplit(link).hostname
        except (ValueError, TypeError, AttributeError):
            return None
        if not hostname:
            return None
        if hostname.startswith("www."):
            hostname = hostname[4:]
        return hostname

    @staticmethod
    def is_redirector_host(host: Optional[str]) -> bool:
        if not host:
            return False
        return any(host == domain or host.endswith("." + domain) for domain in REDIRECTOR_DOMAINS)

    @staticmethod
    def is_protected(link: str) -> bool:
        return LinkParser.is_redirector_host(LinkParser.get_host(link))

    @staticmethod
    def clean(link: str) -> str:
        """
        Strips redirector query parameters:
        https://dl-protect.link/abc123?fn=xxx&rl=yyy -> https://dl-protect.link/abc123
        Any other link is returned unchanged.
        """
        if not LinkParser.is_protected(link):
            return link
        parts = urlsplit(link)
        return f"{parts.scheme}://{parts.netloc}{parts.path}"
